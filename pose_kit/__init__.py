"""
Multi-person pose estimation kit.

Framework-agnostic pieces around a PoseNet-style model: pose types and input
tensors, letterbox preprocessing, pose decoding with keypoint-radius NMS,
ONNX Runtime / TorchScript backends, async model loading, and OpenCV drawing
helpers for keypoints, skeletons and bounding boxes.
"""

from .types import (
    CONNECTED_PARTS,
    EMPTY_RESULT,
    PART_NAMES,
    DetectionResult,
    EstimateParams,
    InputTensor,
    Keypoint,
    Pose,
    make_result,
)
from .config import ModelConfig
from .letterbox import letterbox
from .nms import RadiusNMSConfig, keypoint_nms
from .postprocess import PosePostConfig, PosePostprocessor
from .runtime import PoseNetModel, find_project_root, load_model, resolve_path
from .visualize import Canvas, CvCanvas, draw_bounding_box, draw_keypoints, draw_skeleton, get_bounding_box

__all__ = [
    "CONNECTED_PARTS",
    "EMPTY_RESULT",
    "PART_NAMES",
    "DetectionResult",
    "EstimateParams",
    "InputTensor",
    "Keypoint",
    "Pose",
    "make_result",
    "ModelConfig",
    "letterbox",
    "RadiusNMSConfig",
    "keypoint_nms",
    "PosePostConfig",
    "PosePostprocessor",
    "PoseNetModel",
    "find_project_root",
    "load_model",
    "resolve_path",
    "Canvas",
    "CvCanvas",
    "draw_bounding_box",
    "draw_keypoints",
    "draw_skeleton",
    "get_bounding_box",
]
