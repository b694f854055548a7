"""
Live object detection viewer.

Serves the viewer page and REST API; the session behind it captures frames
from a webcam or an uploaded image, runs them through the detection model and
renders boxes, labels and running statistics.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --host / --port: Override web.host / web.port
"""

import os
import sys
import argparse
import logging
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml

from models.config import Config
from ops.logging import setup_logging
from web.app import create_app


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

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detection', 'session', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)) or isinstance(camera['device_id'], bool):
        return False, "camera.device_id must be an integer (index) or string (path/URL)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution values must be positive integers"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    detection = config.get('detection') or {}
    backend = detection.get('backend', 'yolo')
    if backend not in ('yolo', 'none'):
        return False, "detection.backend must be one of: yolo, none"
    if backend == 'yolo':
        yolo_cfg = detection.get('yolo') or {}
        if not isinstance(yolo_cfg.get('model'), str) or not yolo_cfg.get('model'):
            return False, "detection.yolo.model is required when detection.backend is 'yolo'"
        for key in ('conf_threshold', 'iou_threshold'):
            if key in yolo_cfg and not isinstance(yolo_cfg[key], (int, float)):
                return False, f"detection.yolo.{key} must be a number"

    settings = config.get('settings') or {}
    if 'threshold' in settings:
        t = settings['threshold']
        if not isinstance(t, (int, float)) or not (0 <= t <= 1):
            return False, "settings.threshold must be between 0 and 1"

    session = config.get('session') or {}
    for key in ('frame_interval_ms', 'history_capacity', 'latency_window'):
        if key in session:
            v = session[key]
            if not isinstance(v, int) or v <= 0:
                return False, f"session.{key} must be a positive integer"
    if 'jpeg_quality' in session:
        q = session['jpeg_quality']
        if not isinstance(q, int) or not (1 <= q <= 100):
            return False, "session.jpeg_quality must be between 1 and 100"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Live Object Detection Viewer')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None, help='Bind address (overrides web.host)')
    parser.add_argument('--port', type=int, default=None, help='Port (overrides web.port)')
    args = parser.parse_args()

    raw = load_config(args.config)
    is_valid, error_msg = validate_config(raw)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw)
    setup_logging(config.log_path, config.log_level)

    host = args.host or config.web.host
    port = args.port or config.web.port
    logging.info(f"Starting Live Object Detection Viewer on http://{host}:{port}")

    uvicorn.run(create_app(config), host=host, port=port, log_level="info")
    logging.info("Live Object Detection Viewer stopped")


if __name__ == "__main__":
    main()
