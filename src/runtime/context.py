from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.frame import Frame
from models.results import ClassificationResult, FaceResult


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: dict
    adapter: Any
    engine: Any
    web_state: Any = None

    # Latest results as plain dicts, keyed by stage name
    latest: Dict[str, Any] = field(default_factory=dict)
    last_frame_index: Optional[int] = None

    def publish(self, frame: Frame, results: Dict[str, Any]) -> None:
        """Pipeline callback: forward decoded results to the web state."""
        emotion = results.get("emotion")
        face = results.get("face")
        payload: Dict[str, Any] = {}
        if isinstance(emotion, ClassificationResult):
            payload["emotion"] = emotion.to_dict()
        if isinstance(face, FaceResult):
            payload["face"] = face.to_dict()
        self.latest.update(payload)
        self.last_frame_index = frame.frame_index

        if self.web_state is None:
            return
        if hasattr(self.web_state, "publish_results"):
            self.web_state.publish_results(**payload)
        self.sync_state()

    def sync_state(self) -> None:
        """Copy engine state and counters into the web state."""
        if self.web_state is None or self.engine is None:
            return
        if hasattr(self.web_state, "set_pipeline_state"):
            self.web_state.set_pipeline_state(self.engine.state.value, self.engine.fault)
        if hasattr(self.web_state, "update_system_stats"):
            stats = self.engine.stats
            self.web_state.update_system_stats({
                "cycles": stats.cycles,
                "dropped_ticks": stats.dropped_ticks,
                "empty_reads": stats.empty_reads,
                "last_cycle_s": stats.last_cycle_s,
            })
