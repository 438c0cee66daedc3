"""
ONNX Runtime inference adapter.

Uses onnxruntime if installed. The runtime is imported lazily so the rest of
the pipeline (and its tests) stays importable on machines without it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from models.tensor import Tensor
from .backend import Engine, InferenceAdapter, TensorSpec, resolve_shape
from .errors import InferenceError, ModelLoadError


@dataclass(frozen=True)
class OnnxRuntimeConfig:
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])
    intra_op_num_threads: int = 0


def _spec(node) -> TensorSpec:
    # Symbolic dimensions come back as strings or None.
    dims = tuple(d if isinstance(d, int) and d > 0 else None for d in node.shape)
    return TensorSpec(name=node.name, shape=dims)


class OnnxRuntimeAdapter(InferenceAdapter):
    def __init__(self, cfg: Optional[OnnxRuntimeConfig] = None):
        super().__init__()
        self.cfg = cfg or OnnxRuntimeConfig()
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is not installed. Install with `pip install onnxruntime` "
                "or `pip install .[onnx]`."
            ) from e
        self._ort = ort

    def _load(self, model: str, input_shape: Optional[Sequence[int]]) -> Engine:
        options = self._ort.SessionOptions()
        if self.cfg.intra_op_num_threads:
            options.intra_op_num_threads = self.cfg.intra_op_num_threads
        try:
            session = self._ort.InferenceSession(
                model, sess_options=options, providers=list(self.cfg.providers)
            )
        except Exception as e:
            raise ModelLoadError(f"Failed to load model {model}: {e}") from e

        inputs = [_spec(i) for i in session.get_inputs()]
        outputs = [_spec(o) for o in session.get_outputs()]
        if not inputs:
            raise ModelLoadError(f"Model {model} declares no inputs")

        resolved = resolve_shape(inputs[0].shape, input_shape)
        inputs[0] = TensorSpec(name=inputs[0].name, shape=resolved)
        logging.info(f"ONNX Runtime providers for {model}: {session.get_providers()}")
        return Engine(model=model, inputs=inputs, outputs=outputs, handle=session)

    def _execute(self, engine: Engine, tensor: Tensor) -> Dict[str, Tensor]:
        session = engine.handle
        try:
            arrays = session.run(None, {engine.input_spec.name: tensor.numpy()})
        except Exception as e:
            raise InferenceError(f"Inference failed for {engine.model}: {e}") from e

        return {
            name: Tensor.from_array(arr, name=name)
            for name, arr in zip(engine.output_names, arrays)
        }
