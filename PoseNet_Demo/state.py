from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pose_kit.config import ModelConfig


DEFAULT_IMAGE_ID = "tennis_in_crowd.jpg"


@dataclass
class DetectionParams:
    min_part_confidence: float = 0.1
    min_pose_confidence: float = 0.2
    nms_radius: float = 20.0
    max_detections: int = 15


@dataclass
class DisplayFlags:
    show_keypoints: bool = True
    show_skeleton: bool = True
    show_bounding_box: bool = False


@dataclass
class SessionState:
    """
    Mutable demo configuration shared by every stage of a flow.

    Values are not validated here; out-of-range thresholds go to the model as-is.
    `active_model` is written only by `ModelManager`.
    """

    model: ModelConfig = field(default_factory=ModelConfig)
    image_id: str = DEFAULT_IMAGE_ID
    detection: DetectionParams = field(default_factory=DetectionParams)
    display: DisplayFlags = field(default_factory=DisplayFlags)
    active_model: Optional[Any] = None

    def set_architecture(self, architecture: str, *, mobile: bool = False) -> None:
        self.model = ModelConfig.for_architecture(architecture, mobile=mobile)
