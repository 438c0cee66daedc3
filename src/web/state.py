import threading
import time


class SharedState:
    """
    Singleton class to share results between the pipeline and the web server.

    The pipeline publishes from its own thread; request handlers read copies.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.reset()
        return cls._instance

    def reset(self):
        """Clear all published state."""
        self.results_lock = threading.Lock()
        self.emotion = None
        self.face = None
        self.pipeline_state = "idle"
        self.fault = None
        self.system_stats = {
            "start_time": 0,
            "last_result_ts": None,
            "cycles": 0,
            "dropped_ticks": 0,
            "empty_reads": 0,
            "last_cycle_s": None,
        }

    def publish_results(self, emotion=None, face=None):
        """Store the latest decoded results (plain dicts)."""
        with self.results_lock:
            if emotion is not None:
                self.emotion = dict(emotion)
            if face is not None:
                self.face = dict(face)
            self.system_stats["last_result_ts"] = time.time()

    def get_results_copy(self):
        with self.results_lock:
            return {
                "emotion": dict(self.emotion) if self.emotion is not None else None,
                "face": dict(self.face) if self.face is not None else None,
                "last_result_ts": self.system_stats.get("last_result_ts"),
            }

    def set_pipeline_state(self, state, fault=None):
        with self.results_lock:
            self.pipeline_state = state
            self.fault = fault

    def get_pipeline_state(self):
        with self.results_lock:
            return self.pipeline_state, self.fault

    def update_system_stats(self, stats):
        with self.results_lock:
            self.system_stats.update(stats)

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        with self.results_lock:
            return dict(self.system_stats)


# Global instance
state = SharedState()
