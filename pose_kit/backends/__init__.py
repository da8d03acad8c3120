"""
Inference backends for pose_kit.

Each backend lives in its own module and imports its runtime lazily, so the
decoding and drawing helpers stay usable without onnxruntime or torch installed.
"""

from __future__ import annotations

__all__ = []
