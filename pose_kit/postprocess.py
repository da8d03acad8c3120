from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .nms import RadiusNMSConfig, keypoint_nms
from .types import PART_NAMES, EstimateParams, Keypoint, Pose


@dataclass
class PosePostConfig:
    """
    Layout hints for pose model outputs.
    """

    part_names: Sequence[str] = PART_NAMES
    # Minimum anchors/channels ratio before a 2D output is read as (C, A).
    anchors_ratio: float = 4.0


class PosePostprocessor:
    """
    Post-process for single-stage multi-person pose exports.

    Supported layouts (per image), with K = number of parts:
    - Decoded rows (N, 5 + 3K): [x1, y1, x2, y2, score, (kx, ky, ks) * K]
    - Anchors layout (5 + 3K, A): [cx, cy, w, h, score, (kx, ky, ks) * K] per column

    A leading batch axis of 1 is accepted. Torch outputs must be converted to
    NumPy first.
    """

    def __init__(self, cfg: PosePostConfig = PosePostConfig()):
        self.cfg = cfg

    @property
    def num_parts(self) -> int:
        return len(self.cfg.part_names)

    def process(
        self,
        preds: np.ndarray,
        params: EstimateParams,
        orig_size: Tuple[int, int],
        pad: Tuple[float, float] = (0.0, 0.0),
        ratio: Tuple[float, float] = (1.0, 1.0),
    ) -> List[Pose]:
        """
        Convert raw model output into poses in original image coordinates.

        Args:
            preds: model output for a single image
            params: detection parameters (threshold, NMS radius, max detections, flip)
            orig_size: (width, height) of the original image
            pad: (dw, dh) letterbox padding (left/top)
            ratio: (rw, rh) letterbox scaling
        """

        if params.decoding_method != "multi-person":
            raise ValueError(f"Unsupported decoding method: {params.decoding_method!r}")
        if params.max_detections < 1:
            raise ValueError("max_detections must be >= 1")

        scores, keypoints = self._decode(preds)
        if scores.size == 0:
            return []

        keep = scores >= params.score_threshold
        scores, keypoints = scores[keep], keypoints[keep]
        if scores.size == 0:
            return []

        # Suppress in model input space where nms_radius is defined.
        keep_idx = keypoint_nms(
            keypoints,
            scores,
            RadiusNMSConfig(nms_radius=params.nms_radius, max_detections=params.max_detections),
        )
        scores, keypoints = scores[keep_idx], keypoints[keep_idx]

        keypoints = self._scale_keypoints(keypoints, orig_size, pad, ratio)
        if params.flip_horizontal:
            keypoints[:, :, 0] = (orig_size[0] - 1) - keypoints[:, :, 0]

        names = self.cfg.part_names
        return [
            Pose(
                score=float(score),
                keypoints=tuple(
                    Keypoint(part=names[k], x=float(kx), y=float(ky), score=float(ks))
                    for k, (kx, ky, ks) in enumerate(kps)
                ),
            )
            for score, kps in zip(scores, keypoints)
        ]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _decode(self, preds: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Return pose scores (N,) and keypoints (N, K, 3) from any supported layout.
        """

        p = np.asarray(preds, dtype=np.float32)
        if p.ndim == 3:
            if p.shape[0] != 1:
                raise ValueError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
            p = p[0]
        if p.ndim != 2:
            raise ValueError(f"Unsupported pose output shape: {p.shape}")

        width = 5 + 3 * self.num_parts
        h, w = p.shape
        if w == width:
            rows = p
        elif h == width and w / max(h, 1) >= self.cfg.anchors_ratio:
            rows = p.T
        else:
            raise ValueError(f"Unsupported pose output shape {p.shape}; expected (N, {width}) or ({width}, A)")

        if rows.shape[0] == 0:
            return np.empty((0,), dtype=np.float32), np.empty((0, self.num_parts, 3), dtype=np.float32)

        scores = rows[:, 4].copy()
        keypoints = rows[:, 5:].reshape(-1, self.num_parts, 3).copy()
        return scores, keypoints

    def _scale_keypoints(
        self,
        keypoints: np.ndarray,
        orig_size: Tuple[int, int],
        pad: Tuple[float, float],
        ratio: Tuple[float, float],
    ) -> np.ndarray:
        """
        Map keypoints from the letterboxed input back to the original image.
        """

        dw, dh = pad
        rw, rh = ratio
        keypoints[:, :, 0] = (keypoints[:, :, 0] - dw) / rw
        keypoints[:, :, 1] = (keypoints[:, :, 1] - dh) / rh

        orig_w, orig_h = orig_size
        keypoints[:, :, 0] = np.clip(keypoints[:, :, 0], 0, orig_w - 1)
        keypoints[:, :, 1] = np.clip(keypoints[:, :, 1], 0, orig_h - 1)
        return keypoints
