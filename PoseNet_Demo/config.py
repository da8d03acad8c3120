from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from pose_kit.config import ModelConfig

from .state import DetectionParams, DisplayFlags, SessionState


_MODEL_KEYS = {"architecture", "output_stride", "input_resolution", "multiplier", "quant_bytes"}
_DETECTION_KEYS = {"min_part_confidence", "min_pose_confidence", "nms_radius", "max_detections"}
_DISPLAY_KEYS = {"show_keypoints", "show_skeleton", "show_bounding_box"}
_TOP_KEYS = {"model", "image", "multi_pose_detection"} | _DISPLAY_KEYS


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _require_bool(payload: Dict[str, Any], key: str) -> bool:
    value = payload[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _require_block(payload: Dict[str, Any], key: str, allowed: set) -> Dict[str, Any]:
    block = payload.get(key, {})
    if not isinstance(block, dict):
        raise ValueError(f"'{key}' must be an object")
    unknown = sorted(set(block.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown {key} keys: {unknown}")
    return block


def _model_config(block: Dict[str, Any]) -> ModelConfig:
    architecture = block.get("architecture", "MobileNetV1")
    if not isinstance(architecture, str) or not architecture.strip():
        raise ValueError("architecture must be a non-empty string")
    # Unset fields fall back to the architecture's defaults.
    config = ModelConfig.for_architecture(architecture.strip())
    changes: Dict[str, Any] = {}
    for key in ("output_stride", "input_resolution", "quant_bytes"):
        if key in block:
            changes[key] = _require_int(block, key)
    if "multiplier" in block:
        changes["multiplier"] = _require_number(block, "multiplier")
    return config.with_changes(**changes)


def parse_demo_config(payload: Dict[str, Any]) -> SessionState:
    if not isinstance(payload, dict):
        raise ValueError("Demo config must be a JSON object")
    unknown = sorted(set(payload.keys()) - _TOP_KEYS)
    if unknown:
        raise ValueError(f"Unknown demo config keys: {unknown}")

    state = SessionState()
    if "model" in payload:
        state.model = _model_config(_require_block(payload, "model", _MODEL_KEYS))

    if "image" in payload:
        image = payload["image"]
        if not isinstance(image, str) or not image.strip():
            raise ValueError("image must be a non-empty string")
        state.image_id = image.strip()

    detection = _require_block(payload, "multi_pose_detection", _DETECTION_KEYS)
    defaults = DetectionParams()
    state.detection = DetectionParams(
        min_part_confidence=(
            _require_number(detection, "min_part_confidence")
            if "min_part_confidence" in detection
            else defaults.min_part_confidence
        ),
        min_pose_confidence=(
            _require_number(detection, "min_pose_confidence")
            if "min_pose_confidence" in detection
            else defaults.min_pose_confidence
        ),
        nms_radius=_require_number(detection, "nms_radius") if "nms_radius" in detection else defaults.nms_radius,
        max_detections=(
            _require_int(detection, "max_detections") if "max_detections" in detection else defaults.max_detections
        ),
    )

    flags = DisplayFlags()
    state.display = DisplayFlags(
        **{key: (_require_bool(payload, key) if key in payload else getattr(flags, key)) for key in sorted(_DISPLAY_KEYS)}
    )
    return state


def load_demo_config(path: Path) -> SessionState:
    """
    Build a `SessionState` from a JSON demo config.

    Example:

        {
          "model": {"architecture": "ResNet50", "output_stride": 16},
          "image": "skiing.jpg",
          "multi_pose_detection": {"min_pose_confidence": 0.25, "max_detections": 10},
          "show_bounding_box": true
        }

    Only types are checked; value ranges are left to the model.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Demo config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid demo config JSON: {path}") from exc
    return parse_demo_config(payload)
