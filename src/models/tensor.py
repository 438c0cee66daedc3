"""
Tensor model exchanged with inference adapters.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np


class Tensor:
    """
    Fixed-shape float32 buffer in NHWC layout.

    A tensor is owned by the stage that created it and is released as soon as
    the decoder has read what it needs. Accessing a released tensor raises
    RuntimeError.

    Example:
        tensor = Tensor((1, 64, 64, 1), data)
        try:
            outputs = adapter.execute(engine, tensor)
        finally:
            tensor.release()
    """

    def __init__(self, shape: Sequence[int], data: Optional[np.ndarray] = None, name: Optional[str] = None):
        self._shape: Tuple[int, ...] = tuple(int(d) for d in shape)
        size = int(np.prod(self._shape)) if self._shape else 0
        if data is None:
            buf = np.zeros(size, dtype=np.float32)
        else:
            buf = np.ascontiguousarray(data, dtype=np.float32).reshape(-1)
            if buf.size != size:
                raise ValueError(
                    f"Tensor data length {buf.size} does not match shape {self._shape} ({size})"
                )
        self._data: Optional[np.ndarray] = buf
        self.name = name

    @classmethod
    def from_array(cls, array: np.ndarray, name: Optional[str] = None) -> "Tensor":
        """Wrap an n-dimensional array, keeping its shape."""
        arr = np.asarray(array, dtype=np.float32)
        return cls(arr.shape, arr, name=name)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> np.ndarray:
        """Flat float32 data in row-major order."""
        if self._data is None:
            raise RuntimeError(f"Tensor {self.name or self._shape} has been released")
        return self._data

    def numpy(self) -> np.ndarray:
        """Return the data reshaped to the declared shape (a view)."""
        return self.data.reshape(self._shape)

    def release(self) -> None:
        """Drop the buffer. Safe to call multiple times."""
        self._data = None

    def __enter__(self) -> "Tensor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __len__(self) -> int:
        return int(np.prod(self._shape)) if self._shape else 0

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"Tensor(name={self.name!r}, shape={self._shape}, {state})"
