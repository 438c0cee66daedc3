"""
Inference adapter interface.

Adapters wrap an inference runtime behind a fixed tensor-in/tensor-out
contract. The pipeline never touches runtime-specific types: it loads an
Engine, hands it NHWC float32 Tensors and receives named output Tensors.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models.tensor import Tensor
from .errors import ConfigurationError, ShapeMismatchError

# None marks a dimension the model leaves open (e.g. a symbolic batch axis).
Shape = Tuple[Optional[int], ...]


@dataclass(frozen=True)
class TensorSpec:
    """Name and declared shape of a model input or output."""
    name: str
    shape: Shape

    @property
    def is_static(self) -> bool:
        return all(d is not None for d in self.shape)

    def matches(self, shape: Sequence[int]) -> bool:
        """True when shape agrees with every fixed dimension of this spec."""
        if len(shape) != len(self.shape):
            return False
        return all(d is None or d == s for d, s in zip(self.shape, shape))


def resolve_shape(declared: Shape, configured: Optional[Sequence[int]]) -> Tuple[int, ...]:
    """
    Resolve a declared input shape against the configured one.

    Open dimensions take the configured value; fixed dimensions must agree.

    Raises:
        ShapeMismatchError: If the shapes disagree or an open dimension
            cannot be resolved.
    """
    if configured is None:
        if any(d is None for d in declared):
            raise ShapeMismatchError("Unresolved model input", None, declared)
        return tuple(int(d) for d in declared)

    configured = tuple(int(d) for d in configured)
    spec = TensorSpec("input", declared)
    if not spec.matches(configured):
        raise ShapeMismatchError("Model input", declared, configured)
    return configured


@dataclass(eq=False)
class Engine:
    """
    A loaded model.

    Attributes:
        model: Model reference the engine was loaded from.
        inputs: Input specs; inputs[0] is the tensor fed by the pipeline.
        outputs: Output specs in model order.
        handle: Runtime-specific session object.
    """
    model: str
    inputs: List[TensorSpec]
    outputs: List[TensorSpec]
    handle: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def input_spec(self) -> TensorSpec:
        return self.inputs[0]

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self.input_spec.shape)

    @property
    def output_names(self) -> List[str]:
        return [o.name for o in self.outputs]


class InferenceAdapter(ABC):
    """
    Abstract inference adapter.

    Lifecycle:
        1. load(model, input_shape) once per model; the input shape must be
           fully resolved at load time
        2. execute(engine, tensor) once per pipeline cycle
        3. close() to release every loaded engine

    Subclasses implement _load and _execute.
    """

    def __init__(self):
        self._engines: List[Engine] = []

    @property
    def engines(self) -> List[Engine]:
        return list(self._engines)

    def load(self, model: str, input_shape: Optional[Sequence[int]] = None) -> Engine:
        """
        Load a model and fix its input shape.

        Raises:
            ModelLoadError: If the runtime cannot load the model.
            ShapeMismatchError: If input_shape disagrees with the model.
        """
        engine = self._load(model, input_shape)
        if not engine.input_spec.is_static:
            raise ShapeMismatchError(f"Model {model} input", None, engine.input_spec.shape)
        self._engines.append(engine)
        logging.info(
            f"Model loaded: {model} input={engine.input_spec.name}{engine.input_shape} "
            f"outputs={engine.output_names}"
        )
        return engine

    def execute(self, engine: Engine, tensor: Tensor) -> Dict[str, Tensor]:
        """
        Run one inference.

        Returns:
            Output tensors keyed by output name, in model order.

        Raises:
            ShapeMismatchError: If tensor does not match engine.input_shape.
        """
        if engine not in self._engines:
            raise ConfigurationError(f"Engine for {engine.model} is not loaded by this adapter")
        if tuple(tensor.shape) != engine.input_shape:
            raise ShapeMismatchError(f"Input tensor for {engine.model}", engine.input_shape, tensor.shape)
        return self._execute(engine, tensor)

    def unload(self, engine: Engine) -> None:
        """Release a single engine. Safe to call multiple times."""
        if engine in self._engines:
            self._engines.remove(engine)
            self._release(engine)

    def close(self) -> None:
        """Release all loaded engines."""
        while self._engines:
            self.unload(self._engines[-1])

    @abstractmethod
    def _load(self, model: str, input_shape: Optional[Sequence[int]]) -> Engine:
        pass

    @abstractmethod
    def _execute(self, engine: Engine, tensor: Tensor) -> Dict[str, Tensor]:
        pass

    def _release(self, engine: Engine) -> None:
        engine.handle = None

    def __enter__(self) -> "InferenceAdapter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
