"""
Pipeline fault taxonomy.

Configuration faults are fatal: the pipeline halts instead of producing a
stale or zeroed result. Transient absence (no frame yet) and an empty
detection are not errors and have no exception type.
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Fatal fault: the pipeline cannot produce a valid result."""


class ModelLoadError(ConfigurationError):
    """The inference engine could not load the model."""


class ShapeMismatchError(ConfigurationError):
    """A tensor does not match the shape the model was configured for."""

    def __init__(self, what: str, expected, actual):
        self.expected = tuple(expected) if expected is not None else None
        self.actual = tuple(actual) if actual is not None else None
        super().__init__(f"{what}: expected shape {self.expected}, got {self.actual}")


class InferenceError(ConfigurationError):
    """The inference engine failed while executing a loaded model."""
