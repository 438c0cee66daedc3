"""
Pipeline engine for the expression monitor.

Each timer tick runs one cycle: read a frame from the observation source,
then run every stage (resize, tensor conversion, inference, decoding) on it.
The engine is an explicit state machine:

    IDLE -> CAPTURING -> INFERRING -> IDLE

A tick that arrives while a cycle is still running is dropped, never queued,
so at most one inference is in flight. A configuration fault moves the
engine to HALTED and every later tick is a no-op.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from inference.backend import InferenceAdapter
from inference.errors import ConfigurationError
from models.frame import Frame
from observation import ObservationSource, create_source_from_config
from .stages import EmotionStage, EmotionStageConfig, FaceStage, FaceStageConfig, Stage

ResultCallback = Callable[[Frame, Dict[str, Any]], None]


class PipelineState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    INFERRING = "inferring"
    HALTED = "halted"
    STOPPED = "stopped"


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        interval_s: Seconds between ticks.
        offload: Run each cycle on a worker thread instead of inside tick().
        stats_log_interval: Seconds between status log messages.
    """
    interval_s: float = 1.0
    offload: bool = False
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PipelineConfig":
        return cls(
            interval_s=float(d.get("interval_s", 1.0)),
            offload=bool(d.get("offload", False)),
            stats_log_interval=float(d.get("stats_log_interval", 60.0)),
        )


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    ticks: int = 0
    cycles: int = 0
    dropped_ticks: int = 0
    empty_reads: int = 0
    last_cycle_s: Optional[float] = None
    last_result_time: Optional[float] = None
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticks": self.ticks,
            "cycles": self.cycles,
            "dropped_ticks": self.dropped_ticks,
            "empty_reads": self.empty_reads,
            "last_cycle_s": self.last_cycle_s,
            "last_result_time": self.last_result_time,
            "start_time": self.start_time,
        }


class Ticker:
    """
    Fixed-cadence timer.

    wait() sleeps until the next deadline. When a cycle overruns one or more
    deadlines those ticks are skipped rather than fired back to back; wait()
    returns how many were skipped.
    """

    def __init__(
        self,
        interval_s: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.interval_s = interval_s
        self._clock = clock
        self._sleep = sleep
        self._next: Optional[float] = None

    def wait(self) -> int:
        now = self._clock()
        if self._next is None:
            self._next = now
            return 0

        self._next += self.interval_s
        skipped = 0
        if now > self._next:
            skipped = int((now - self._next) // self.interval_s)
            self._next += skipped * self.interval_s
        delay = self._next - now
        if delay > 0:
            self._sleep(delay)
        return skipped


class PipelineEngine:
    """
    Tick-driven processing engine.

    Example:
        engine = PipelineEngine(source, [EmotionStage(cfg, adapter)], PipelineConfig())
        engine.add_callback(publish)
        engine.run()

    Or drive it from an external timer:
        engine.start()
        engine.tick()
        engine.shutdown()
    """

    def __init__(
        self,
        source: ObservationSource,
        stages: List[Stage],
        config: Optional[PipelineConfig] = None,
    ):
        self.source = source
        self.stages = list(stages)
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._state = PipelineState.IDLE
        self._lock = threading.Lock()
        self._running = False
        self._started = False
        self._fault: Optional[str] = None
        self._last_frame: Optional[Frame] = None
        self._last_results: Dict[str, Any] = {}
        self._callbacks: List[ResultCallback] = []
        self._executor: Optional[ThreadPoolExecutor] = None
        self._in_flight: Optional[Future] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def fault(self) -> Optional[str]:
        """Diagnostic for the configuration fault that halted the pipeline."""
        return self._fault

    @property
    def halted(self) -> bool:
        return self._state == PipelineState.HALTED

    @property
    def last_frame(self) -> Optional[Frame]:
        """The most recently captured frame, used for crop mapping."""
        return self._last_frame

    @property
    def last_results(self) -> Dict[str, Any]:
        return dict(self._last_results)

    def add_callback(self, callback: ResultCallback) -> None:
        """
        Add a callback to be called after each completed cycle.

        Args:
            callback: Function taking (frame, results) where results maps
                stage name to its decoded result.
        """
        self._callbacks.append(callback)

    def start(self) -> None:
        """
        Open the source and load every stage's model.

        A model that fails to load halts the pipeline instead of raising.
        """
        if self._started:
            return
        self._started = True
        self.stats = PipelineStats()
        with self._lock:
            if self._state == PipelineState.STOPPED:
                self._state = PipelineState.IDLE
        try:
            for stage in self.stages:
                stage.load()
            self.source.open()
        except (ConfigurationError, RuntimeError) as e:
            self._halt(e)
            return
        if self.config.offload:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inference")
        logging.info(
            f"Pipeline started: source={self.source.source_id}, "
            f"stages={[s.name for s in self.stages]}, interval={self.config.interval_s}s"
        )

    def tick(self) -> Optional[Dict[str, Any]]:
        """
        Handle one timer tick.

        Returns:
            Results of the cycle run by this tick, or None when the tick was
            dropped, no frame was available, the pipeline is halted, or the
            cycle was handed to the worker thread.
        """
        with self._lock:
            self.stats.ticks += 1
            if self._state != PipelineState.IDLE:
                if self._state in (PipelineState.CAPTURING, PipelineState.INFERRING):
                    self.stats.dropped_ticks += 1
                return None
            self._state = PipelineState.CAPTURING

        if self._executor is not None:
            self._in_flight = self._executor.submit(self._cycle)
            return None
        return self._cycle()

    def _cycle(self) -> Optional[Dict[str, Any]]:
        started = time.monotonic()
        try:
            frame = self.source.read()
            if frame is None:
                self.stats.empty_reads += 1
                logging.debug("No frame available, waiting for next tick")
                self._set_state(PipelineState.IDLE)
                return None

            with self._lock:
                self._last_frame = frame
                self._state = PipelineState.INFERRING

            results = {stage.name: stage.process(frame) for stage in self.stages}
        except ConfigurationError as e:
            self._halt(e)
            return None
        except Exception as e:
            logging.exception(f"Pipeline cycle failed: {e}")
            self._halt(e)
            return None

        self.stats.cycles += 1
        self.stats.last_cycle_s = time.monotonic() - started
        self.stats.last_result_time = time.time()
        self._last_results = results
        self._set_state(PipelineState.IDLE)

        for callback in self._callbacks:
            try:
                callback(frame, results)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        self._handle_periodic_tasks()
        return results

    def _set_state(self, state: PipelineState) -> None:
        with self._lock:
            if self._state not in (PipelineState.HALTED, PipelineState.STOPPED):
                self._state = state

    def _halt(self, error: BaseException) -> None:
        with self._lock:
            self._state = PipelineState.HALTED
            self._fault = f"{type(error).__name__}: {error}"
        self._running = False
        logging.error(f"Pipeline halted: {self._fault}")

    def run(self, max_ticks: Optional[int] = None, ticker: Optional[Ticker] = None) -> None:
        """
        Run the tick loop until stop(), a halt, or max_ticks ticks.

        Releases every resource on exit.
        """
        ticker = ticker or Ticker(self.config.interval_s)
        self._running = True
        try:
            self.start()
            ticks = 0
            while self._running and not self.halted:
                skipped = ticker.wait()
                if skipped:
                    self.stats.dropped_ticks += skipped
                if not self._running:
                    break
                self.tick()
                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break
        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self.shutdown()

    def stop(self) -> None:
        """Signal the run loop to stop after the current tick."""
        self._running = False

    def shutdown(self) -> None:
        """
        Stop ticking and release the source, models and retained frame.

        Waits for an in-flight cycle to finish first. Safe to call multiple
        times.
        """
        self._running = False
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self._in_flight = None

        adapters: List[InferenceAdapter] = []
        for stage in self.stages:
            try:
                stage.close()
            except Exception as e:
                logging.warning(f"Error closing {stage.name} stage: {e}")
            if stage.adapter not in adapters:
                adapters.append(stage.adapter)
        for adapter in adapters:
            adapter.close()

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        with self._lock:
            self._last_frame = None
            if self._state != PipelineState.HALTED:
                self._state = PipelineState.STOPPED
        if self._started:
            logging.info(
                f"Pipeline stopped: cycles={self.stats.cycles}, "
                f"dropped_ticks={self.stats.dropped_ticks}, empty_reads={self.stats.empty_reads}"
            )
        self._started = False

    close = shutdown

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Block until an offloaded cycle, if any, has finished."""
        future = self._in_flight
        if future is not None:
            future.result(timeout=timeout)

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Pipeline stats: cycles={self.stats.cycles}, "
                f"dropped_ticks={self.stats.dropped_ticks}, "
                f"empty_reads={self.stats.empty_reads}, "
                f"last_cycle={self.stats.last_cycle_s:.3f}s"
            )
            self.stats.last_stats_log_time = now


def create_stages_from_config(config: Dict[str, Any], adapter: InferenceAdapter) -> List[Stage]:
    """Build the enabled stages from the emotion and face config sections."""
    stages: List[Stage] = []
    emotion_cfg = config.get("emotion") or {}
    if emotion_cfg and emotion_cfg.get("enabled", True):
        stages.append(EmotionStage(EmotionStageConfig.from_dict(emotion_cfg), adapter))
    face_cfg = config.get("face") or {}
    if face_cfg and face_cfg.get("enabled", True):
        stages.append(FaceStage(FaceStageConfig.from_dict(face_cfg), adapter))
    return stages


def create_engine_from_config(
    config: Dict[str, Any],
    adapter: InferenceAdapter,
    source: Optional[ObservationSource] = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the config dict.

    Args:
        config: Full application config dict.
        adapter: Inference adapter shared by all stages.
        source: Frame source; defaults to the one selected by camera config.
    """
    if source is None:
        source = create_source_from_config(config.get("camera", {}), source_id="main-camera")
    stages = create_stages_from_config(config, adapter)
    pipeline_config = PipelineConfig.from_dict(config.get("pipeline", {}) or {})
    return PipelineEngine(source, stages, pipeline_config)
