"""
Classification decoding: raw scores to probabilities and a top label.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from models.results import EMOTION_LABELS, ClassificationResult
from models.tensor import Tensor


def softmax(scores) -> np.ndarray:
    """Numerically stable softmax (max is subtracted before exponentiating)."""
    x = np.asarray(scores, dtype=np.float64).reshape(-1)
    exps = np.exp(x - np.max(x))
    return exps / np.sum(exps)


def decode_classification(scores, labels: Sequence[str] = EMOTION_LABELS) -> ClassificationResult:
    """
    Decode one score vector.

    Accepts any array-like holding exactly len(labels) values, including a
    (1, 1, 1, N) output tensor. Ties resolve to the lowest index.

    Raises:
        ValueError: On a length mismatch or non-finite scores.
    """
    if isinstance(scores, Tensor):
        scores = scores.data
    x = np.asarray(scores, dtype=np.float64).reshape(-1)
    if x.size != len(labels):
        raise ValueError(f"Expected {len(labels)} scores, got {x.size}")
    if not np.all(np.isfinite(x)):
        raise ValueError(f"Scores must be finite: {x.tolist()}")

    probs = softmax(x)
    top = int(np.argmax(probs))
    return ClassificationResult(
        probabilities=tuple(float(p) for p in probs),
        top_index=top,
        top_label=labels[top],
    )
