"""
Expression monitor: periodic face detection and emotion recognition.

Captures a frame on every pipeline tick, runs the configured models on it and
publishes the decoded results to the status API.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --max-ticks: Stop after this many ticks
    --once: Run a single tick and exit
    --no-web: Do not start the status API
"""

import os
import sys
import argparse
import logging
import threading
import time
import yaml
from typing import Dict, Any, Tuple, Optional

import uvicorn

from inference.backend import InferenceAdapter
from models.config import Config
from ops.logging import setup_logging
from pipeline.engine import create_engine_from_config
from preprocess.resample import METHODS
from runtime.context import RuntimeContext
from web.app import create_app
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if (
            os.path.exists(config_path)
            and os.path.abspath(config_path) != os.path.abspath(local_overrides_path)
            and os.path.abspath(config_path) != os.path.abspath(base_path)
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_size(value) -> bool:
    return (
        isinstance(value, list)
        and len(value) == 2
        and all(isinstance(x, int) and not isinstance(x, bool) and x > 0 for x in value)
    )


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_model_section(name: str, section: Dict[str, Any]) -> Optional[str]:
    if not isinstance(section.get('model'), str) or not section.get('model'):
        return f"{name}.model is required when {name} is enabled"
    if 'input_size' in section and not _is_size(section['input_size']):
        return f"{name}.input_size must be a list of positive integers [width, height]"
    if section.get('resize', 'bilinear') not in METHODS:
        return f"{name}.resize must be one of: {', '.join(METHODS)}"
    return None


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    backend = camera.get('backend', 'opencv')
    if backend not in ('opencv', 'image'):
        return False, "camera.backend must be one of: opencv, image"
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    device_id = camera['device_id']
    if isinstance(device_id, bool) or not isinstance(device_id, (int, str)):
        return False, "camera.device_id must be an integer (index) or string (file path)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "camera.device_id integer must be non-negative"
    if backend == 'image' and not isinstance(device_id, str):
        return False, "camera.device_id must be an image path when camera.backend is 'image'"
    if 'resolution' in camera and not _is_size(camera['resolution']):
        return False, "camera.resolution must be a list of positive integers [width, height]"
    if 'fps' in camera:
        fps = camera['fps']
        if isinstance(fps, bool) or not isinstance(fps, int) or fps <= 0:
            return False, "camera.fps must be a positive integer"

    # Models
    emotion = config.get('emotion') or {}
    face = config.get('face') or {}
    emotion_on = bool(emotion) and emotion.get('enabled', True)
    face_on = bool(face) and face.get('enabled', True)
    if not emotion_on and not face_on:
        return False, "At least one of emotion or face must be configured and enabled"

    if emotion_on:
        error = _validate_model_section('emotion', emotion)
        if error:
            return False, error

    if face_on:
        error = _validate_model_section('face', face)
        if error:
            return False, error
        if 'min_score' not in face or face['min_score'] is None:
            return False, "face.min_score is required when face is enabled"
        if not _is_number(face['min_score']) or not (0 <= face['min_score'] <= 1):
            return False, "face.min_score must be a number between 0 and 1"
        score_index = face.get('score_index', 1)
        if isinstance(score_index, bool) or not isinstance(score_index, int) or score_index < 0:
            return False, "face.score_index must be a non-negative integer"
        if 'display_size' in face and face['display_size'] is not None and not _is_size(face['display_size']):
            return False, "face.display_size must be a list of positive integers [width, height]"

    # Inference runtime
    inference = config.get('inference') or {}
    if inference.get('backend', 'onnxruntime') != 'onnxruntime':
        return False, "inference.backend must be: onnxruntime"
    providers = inference.get('providers', ['CPUExecutionProvider'])
    if not isinstance(providers, list) or not all(isinstance(p, str) for p in providers):
        return False, "inference.providers must be a list of provider names"
    threads = inference.get('intra_op_num_threads', 0)
    if isinstance(threads, bool) or not isinstance(threads, int) or threads < 0:
        return False, "inference.intra_op_num_threads must be a non-negative integer"

    # Pipeline cadence
    pipeline = config.get('pipeline') or {}
    if 'interval_s' in pipeline:
        if not _is_number(pipeline['interval_s']) or pipeline['interval_s'] <= 0:
            return False, "pipeline.interval_s must be a positive number"
    if 'offload' in pipeline and not isinstance(pipeline['offload'], bool):
        return False, "pipeline.offload must be true or false"

    # Web
    web = config.get('web') or {}
    if 'port' in web:
        port = web['port']
        if isinstance(port, bool) or not isinstance(port, int) or not (0 < port < 65536):
            return False, "web.port must be an integer between 1 and 65535"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def create_adapter(config: Config) -> InferenceAdapter:
    """Create the inference adapter selected by inference.backend."""
    from inference.onnx_backend import OnnxRuntimeAdapter, OnnxRuntimeConfig

    return OnnxRuntimeAdapter(
        OnnxRuntimeConfig(
            providers=list(config.inference.providers),
            intra_op_num_threads=int(config.inference.intra_op_num_threads),
        )
    )


def start_web(config: Config) -> threading.Thread:
    host = config.web.host
    port = config.web.port

    def run_web_app():
        uvicorn.run(create_app(), host=host, port=port, log_level="info")

    web_thread = threading.Thread(target=run_web_app, daemon=True)
    web_thread.start()
    logging.info(f"Status API started on {host}:{port}")
    return web_thread


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Expression Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--max-ticks', type=int, default=None,
                        help='Stop after this many ticks')
    parser.add_argument('--once', action='store_true',
                        help='Run a single tick and exit')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the status API')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    typed = Config.from_dict(config)
    setup_logging(typed.log_path, typed.log_level)
    logging.info("Starting Expression Monitor")

    adapter = create_adapter(typed)
    engine = create_engine_from_config(config, adapter)
    ctx = RuntimeContext(config=config, adapter=adapter, engine=engine, web_state=web_state)
    engine.add_callback(ctx.publish)

    web_state.update_system_stats({"start_time": time.time()})
    if not args.no_web and typed.web.enabled:
        start_web(typed)

    max_ticks = 1 if args.once else args.max_ticks
    engine.run(max_ticks=max_ticks)
    ctx.sync_state()

    if engine.halted:
        logging.error(f"Expression Monitor halted: {engine.fault}")
        sys.exit(2)

    if args.once:
        for name, result in ctx.latest.items():
            logging.info(f"{name}: {result}")
    logging.info("Expression Monitor stopped")


if __name__ == "__main__":
    main()
