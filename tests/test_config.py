"""
Tests for configuration loading and validation.
"""

import pytest

from main import _deep_merge, load_config, validate_config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        is_valid, error = validate_config(valid_config)
        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["camera", "log_path", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        del valid_config[section]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert section in error

    def test_missing_device_id(self, valid_config):
        del valid_config["camera"]["device_id"]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "device_id" in error

    def test_invalid_device_id_type(self, valid_config):
        valid_config["camera"]["device_id"] = 1.5
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "device_id" in error

    def test_negative_device_id(self, valid_config):
        valid_config["camera"]["device_id"] = -1
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "non-negative" in error

    def test_string_device_id_valid(self, valid_config):
        valid_config["camera"]["device_id"] = "/videos/test.mp4"
        is_valid, _ = validate_config(valid_config)
        assert is_valid is True

    def test_image_backend_requires_path(self, valid_config):
        valid_config["camera"]["backend"] = "image"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "image path" in error

        valid_config["camera"]["device_id"] = "samples/face.png"
        assert validate_config(valid_config)[0] is True

    def test_invalid_camera_backend(self, valid_config):
        valid_config["camera"]["backend"] = "picamera2"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "camera.backend" in error

    @pytest.mark.parametrize("resolution", ["640x360", [640], [640, 0], [640.0, 360]])
    def test_invalid_resolution(self, valid_config, resolution):
        valid_config["camera"]["resolution"] = resolution
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "resolution" in error

    def test_invalid_fps(self, valid_config):
        valid_config["camera"]["fps"] = 0
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "fps" in error

    def test_no_model_enabled(self, valid_config):
        valid_config["emotion"]["enabled"] = False
        del valid_config["face"]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "emotion or face" in error

    def test_single_model_is_enough(self, valid_config):
        del valid_config["face"]
        assert validate_config(valid_config)[0] is True

    def test_model_path_required(self, valid_config):
        valid_config["emotion"]["model"] = ""
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "emotion.model" in error

    def test_invalid_input_size(self, valid_config):
        valid_config["face"]["input_size"] = [320]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "face.input_size" in error

    def test_invalid_resize_method(self, valid_config):
        valid_config["emotion"]["resize"] = "bicubic"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "emotion.resize" in error

    def test_face_threshold_required(self, valid_config):
        del valid_config["face"]["min_score"]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "min_score" in error

    def test_face_threshold_not_required_when_disabled(self, valid_config):
        del valid_config["face"]["min_score"]
        valid_config["face"]["enabled"] = False
        assert validate_config(valid_config)[0] is True

    @pytest.mark.parametrize("min_score", [-0.1, 1.5, "0.7", True])
    def test_face_threshold_range(self, valid_config, min_score):
        valid_config["face"]["min_score"] = min_score
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "min_score" in error

    def test_loose_threshold_valid(self, valid_config):
        valid_config["face"]["min_score"] = 0.05
        assert validate_config(valid_config)[0] is True

    def test_invalid_display_size(self, valid_config):
        valid_config["face"]["display_size"] = [640, -1]
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "display_size" in error

    def test_invalid_inference_backend(self, valid_config):
        valid_config["inference"] = {"backend": "tensorrt"}
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "inference.backend" in error

    def test_invalid_providers(self, valid_config):
        valid_config["inference"] = {"providers": "CPUExecutionProvider"}
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "providers" in error

    @pytest.mark.parametrize("interval", [0, -1, "1s"])
    def test_invalid_interval(self, valid_config, interval):
        valid_config["pipeline"]["interval_s"] = interval
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "interval_s" in error

    def test_invalid_offload(self, valid_config):
        valid_config["pipeline"]["offload"] = "yes"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "offload" in error

    def test_invalid_web_port(self, valid_config):
        valid_config["web"]["port"] = 70000
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "web.port" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "log_level" in error


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["camera"]["backend"] == "opencv"
        assert config["camera"]["resolution"] == [640, 360]
        assert config["face"]["min_score"] == 0.7
        assert validate_config(config)[0] is True

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
camera:
  device_id: 1
face:
  min_score: 0.05
""")

        config = load_config(str(config_yaml))

        assert config["camera"]["device_id"] == 1
        assert config["face"]["min_score"] == 0.05
        assert config["camera"]["resolution"] == [640, 360]
        assert config["face"]["input_size"] == [320, 240]

    def test_explicit_path_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("pipeline:\n  interval_s: 2.0\n")
        explicit = temp_config_dir / "kiosk.yaml"
        explicit.write_text("pipeline:\n  interval_s: 0.5\nlog_level: DEBUG\n")

        config = load_config(str(explicit))

        assert config["pipeline"]["interval_s"] == 0.5
        assert config["log_level"] == "DEBUG"
        assert config["emotion"]["model"] == "models/emotion.onnx"

    def test_invalid_yaml_exits(self, temp_config_dir):
        bad = temp_config_dir / "config.yaml"
        bad.write_text("camera: [unclosed\n")
        with pytest.raises(SystemExit):
            load_config(str(bad))


class TestDeepMerge:
    def test_nested_keys_preserved(self):
        base = {"face": {"model": "a.onnx", "min_score": 0.7}, "log_level": "INFO"}
        merged = _deep_merge(base, {"face": {"min_score": 0.5}})
        assert merged == {"face": {"model": "a.onnx", "min_score": 0.5}, "log_level": "INFO"}

    def test_non_dict_replaces(self):
        merged = _deep_merge({"camera": {"resolution": [640, 360]}}, {"camera": {"resolution": [320, 240]}})
        assert merged["camera"]["resolution"] == [320, 240]


class TestCreateAdapter:
    def test_uses_typed_inference_section(self, valid_config, monkeypatch):
        import sys
        import types

        from main import create_adapter
        from models.config import Config

        module = types.ModuleType("onnxruntime")
        monkeypatch.setitem(sys.modules, "onnxruntime", module)
        valid_config["inference"] = {"providers": ["CUDAExecutionProvider"], "intra_op_num_threads": 2}

        adapter = create_adapter(Config.from_dict(valid_config))

        assert adapter.cfg.providers == ["CUDAExecutionProvider"]
        assert adapter.cfg.intra_op_num_threads == 2
