"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config


@pytest.fixture
def temp_config_dir(tmp_path):
    """Config directory holding only a default.yaml."""
    (tmp_path / "default.yaml").write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  backend: "yolo"
  yolo:
    model: "yolov8n.pt"
    conf_threshold: 0.25

settings:
  threshold: 0.5

session:
  frame_interval_ms: 16
  history_capacity: 12

log_path: "logs/test.log"
log_level: "INFO"
""")
    return tmp_path


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["camera", "detection", "session", "log_path", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        """Each required section is reported by name when missing."""
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error.lower()

    def test_settings_section_optional(self, valid_config):
        """Display settings fall back to defaults when omitted."""
        del valid_config["settings"]

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_device_id_type(self, valid_config):
        """device_id with invalid type fails."""
        valid_config["camera"]["device_id"] = [1, 2, 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_bool_device_id_rejected(self, valid_config):
        valid_config["camera"]["device_id"] = True

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_negative_device_id(self, valid_config):
        """Negative integer device_id fails."""
        valid_config["camera"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_string_device_id_valid(self, valid_config):
        """String device_id (device path) is valid."""
        valid_config["camera"]["device_id"] = "/dev/video2"

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_resolution_format(self, valid_config):
        """Invalid resolution format fails."""
        valid_config["camera"]["resolution"] = 1920  # Should be list

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "resolution" in error.lower()

    def test_invalid_fps(self, valid_config):
        """Non-positive fps fails."""
        valid_config["camera"]["fps"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "fps" in error.lower()

    def test_invalid_detection_backend(self, valid_config):
        """Unknown detection backend fails."""
        valid_config["detection"]["backend"] = "magic"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error.lower()

    def test_yolo_backend_requires_model(self, valid_config):
        """YOLO backend without model fails."""
        valid_config["detection"]["yolo"] = {}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model" in error.lower()

    def test_null_backend_needs_no_model(self, valid_config):
        valid_config["detection"] = {"backend": "none"}

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    @pytest.mark.parametrize("threshold", [-0.1, 1.5, "high"])
    def test_invalid_threshold(self, valid_config, threshold):
        valid_config["settings"]["threshold"] = threshold

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "threshold" in error.lower()

    @pytest.mark.parametrize("key", ["frame_interval_ms", "history_capacity", "latency_window"])
    def test_session_values_must_be_positive(self, valid_config, key):
        valid_config["session"][key] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert key in error

    def test_invalid_jpeg_quality(self, valid_config):
        valid_config["session"]["jpeg_quality"] = 101

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "jpeg_quality" in error

    def test_invalid_log_level(self, valid_config):
        """Invalid log level fails."""
        valid_config["log_level"] = "VERBOSE"  # Not a valid level

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        config = load_config(config_path)

        assert config["camera"]["device_id"] == 0
        assert config["camera"]["resolution"] == [640, 480]
        assert validate_config(config) == (True, None)

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
camera:
  resolution: [1920, 1080]
  fps: 60
""")

        config = load_config(str(config_yaml))

        # Overridden values
        assert config["camera"]["resolution"] == [1920, 1080]
        assert config["camera"]["fps"] == 60

        # Original values preserved
        assert config["camera"]["device_id"] == 0

    def test_deep_merge_preserves_nested(self, temp_config_dir):
        """Deep merge preserves nested keys not overridden."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
detection:
  yolo:
    model: "yolov8s.pt"
""")

        config = load_config(str(config_yaml))

        assert config["detection"]["yolo"]["model"] == "yolov8s.pt"
        assert config["detection"]["yolo"]["conf_threshold"] == 0.25
        assert config["detection"]["backend"] == "yolo"

    def test_explicit_path_applied_last(self, temp_config_dir):
        """An explicit --config file overrides both default.yaml and config.yaml."""
        (temp_config_dir / "config.yaml").write_text("settings:\n  threshold: 0.3\n")
        explicit = temp_config_dir / "demo.yaml"
        explicit.write_text("settings:\n  threshold: 0.8\n")

        config = load_config(str(explicit))

        assert config["settings"]["threshold"] == 0.8
        assert config["session"]["history_capacity"] == 12

    def test_malformed_yaml_exits(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("camera: [unclosed\n")

        with pytest.raises(SystemExit):
            load_config(str(temp_config_dir / "config.yaml"))


class TestSetupLogging:
    def test_creates_log_directory(self, tmp_path):
        import logging

        from ops.logging import setup_logging

        log_path = tmp_path / "logs" / "viewer.log"
        setup_logging(str(log_path), "DEBUG")
        logging.getLogger("viewer-test").info("hello")

        assert log_path.exists()
        assert logging.getLogger().level == logging.DEBUG
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in log_path.read_text()
