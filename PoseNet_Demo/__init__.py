"""
Interactive PoseNet demo layer built on top of `pose_kit`.

`pose_kit` owns the model itself (loading, preprocessing, decoding, drawing
primitives). This package owns the demo session around it:
- session state (model variant, image, thresholds, display flags)
- image loading with a bounded timeout
- model lifecycle (dispose-before-load, loading indicator)
- the inference pipeline with scoped input tensors
- the result store and renderer
- the `PoseDemo` flow with its generation guard
"""

from __future__ import annotations

from .config import load_demo_config, parse_demo_config
from .demo import PoseDemo, build_demo
from .errors import InferenceFailure, LoadFailure, ModelLoadFailure, PoseDemoError
from .image_source import IMAGE_BUCKET, IMAGES, ImageSource, LoadedImage, decode_image
from .inference import estimate_params, input_tensor, run_inference
from .model_manager import ModelManager
from .renderer import TARGET_SIZE, render
from .result_store import ResultStore
from .state import DEFAULT_IMAGE_ID, DetectionParams, DisplayFlags, SessionState
from .status import LogStatusDisplay, StatusDisplay, loading_ui

__all__ = [
    "load_demo_config",
    "parse_demo_config",
    "PoseDemo",
    "build_demo",
    "InferenceFailure",
    "LoadFailure",
    "ModelLoadFailure",
    "PoseDemoError",
    "IMAGE_BUCKET",
    "IMAGES",
    "ImageSource",
    "LoadedImage",
    "decode_image",
    "estimate_params",
    "input_tensor",
    "run_inference",
    "ModelManager",
    "TARGET_SIZE",
    "render",
    "ResultStore",
    "DEFAULT_IMAGE_ID",
    "DetectionParams",
    "DisplayFlags",
    "SessionState",
    "LogStatusDisplay",
    "StatusDisplay",
    "loading_ui",
]
