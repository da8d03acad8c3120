from dataclasses import dataclass

import numpy as np


@dataclass
class RadiusNMSConfig:
    nms_radius: float = 20.0
    max_detections: int = 15


def keypoint_nms(keypoints: np.ndarray, scores: np.ndarray, cfg: RadiusNMSConfig) -> np.ndarray:
    """
    Keypoint-radius NMS over candidate poses.

    Expects keypoints shape (N, K, 3) as [x, y, score] and pose scores shape (N,).
    Candidates are visited by descending score; a candidate is dropped when its
    highest-scoring keypoint lies within `nms_radius` pixels of the same part of
    a pose that was already kept. Returns indices of poses to keep, best first.
    """

    if keypoints.size == 0:
        return np.empty((0,), dtype=np.int32)

    radius_sq = float(cfg.nms_radius) ** 2
    order = np.argsort(-scores, kind="stable")
    keep = []

    for i in order:
        if len(keep) >= cfg.max_detections:
            break
        root = int(np.argmax(keypoints[i, :, 2]))
        if keep:
            kept_xy = keypoints[np.array(keep), root, :2]
            d = kept_xy - keypoints[i, root, :2]
            if np.any((d * d).sum(axis=1) <= radius_sq):
                continue
        keep.append(int(i))

    return np.array(keep, dtype=np.int32)
