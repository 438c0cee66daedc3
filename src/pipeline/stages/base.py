"""
Base class for inference stages.

A stage binds one inference adapter, one tensor policy and one decoder into
a single process(frame) -> result step. Every tensor a stage creates lives
for one call only and is released on every exit path.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Tuple

from inference.backend import Engine, InferenceAdapter
from inference.errors import ConfigurationError
from models.frame import Frame
from models.tensor import Tensor
from preprocess.resample import resize
from preprocess.tensor_builder import TensorPolicy, build_tensor


class Stage(ABC):
    """
    One model in the pipeline.

    Lifecycle:
        1. load() once, before the first tick
        2. process(frame) once per pipeline cycle
        3. close() on shutdown
    """

    name: str = "stage"
    policy: TensorPolicy = TensorPolicy.GRAYSCALE

    def __init__(self, adapter: InferenceAdapter, model: str, input_size: Tuple[int, int], resize_method: str):
        self.adapter = adapter
        self.model = model
        self.input_w, self.input_h = int(input_size[0]), int(input_size[1])
        self.resize_method = resize_method
        self._engine: Optional[Engine] = None

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return (1, self.input_h, self.input_w, self.policy.channels)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise ConfigurationError(f"{self.name} stage used before load()")
        return self._engine

    @property
    def is_loaded(self) -> bool:
        return self._engine is not None

    def load(self) -> None:
        """Load the model with this stage's input shape."""
        if self._engine is None:
            self._engine = self.adapter.load(self.model, self.input_shape)

    def close(self) -> None:
        if self._engine is not None:
            self.adapter.unload(self._engine)
            self._engine = None
            logging.info(f"{self.name} stage released {self.model}")

    def prepare(self, frame: Frame) -> Frame:
        """Hook for per-stage cropping before resize."""
        return frame

    @contextmanager
    def infer(self, frame: Frame) -> Iterator[Dict[str, Tensor]]:
        """
        Preprocess and run the model, yielding the output tensors.

        Input and output tensors are released when the block exits, whether
        decoding succeeded or raised.
        """
        resized = resize(self.prepare(frame), self.input_w, self.input_h, self.resize_method)
        tensor = build_tensor(resized, self.policy, shape=self.engine.input_shape, name="input")
        outputs: Dict[str, Tensor] = {}
        try:
            outputs = self.adapter.execute(self.engine, tensor)
            yield outputs
        finally:
            tensor.release()
            for out in outputs.values():
                out.release()

    @abstractmethod
    def process(self, frame: Frame) -> Any:
        pass
