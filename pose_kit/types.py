from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np


PART_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

CONNECTED_PARTS: Tuple[Tuple[str, str], ...] = (
    ("left_hip", "left_shoulder"),
    ("left_elbow", "left_shoulder"),
    ("left_elbow", "left_wrist"),
    ("left_hip", "left_knee"),
    ("left_knee", "left_ankle"),
    ("right_hip", "right_shoulder"),
    ("right_elbow", "right_shoulder"),
    ("right_elbow", "right_wrist"),
    ("right_hip", "right_knee"),
    ("right_knee", "right_ankle"),
    ("left_shoulder", "right_shoulder"),
    ("left_hip", "right_hip"),
)


@dataclass(frozen=True)
class Keypoint:
    """
    A single labelled body part in image pixel coordinates.
    """

    part: str
    x: float
    y: float
    score: float

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y


@dataclass(frozen=True)
class Pose:
    """
    One detected person: pose-level confidence plus its keypoints in part order.
    """

    score: float
    keypoints: Tuple[Keypoint, ...] = ()

    def keypoint(self, part: str) -> Optional[Keypoint]:
        for kp in self.keypoints:
            if kp.part == part:
                return kp
        return None


@dataclass(frozen=True)
class EstimateParams:
    flip_horizontal: bool = False
    decoding_method: str = "multi-person"
    max_detections: int = 15
    score_threshold: float = 0.5
    nms_radius: float = 20.0


class InputTensor:
    """
    Numeric buffer derived from an image, consumed by `PoseNetModel.estimate_poses`.

    The buffer is released by `dispose()`; reading `data` afterwards is an error.
    """

    def __init__(self, data: np.ndarray):
        self._data: Optional[np.ndarray] = data
        self.dispose_count = 0

    @classmethod
    def from_image(cls, pixels: np.ndarray) -> "InputTensor":
        if pixels is None or not hasattr(pixels, "shape"):
            raise TypeError("pixels must be a NumPy array.")
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(pixels, 'shape', None)}")
        return cls(np.array(pixels, dtype=np.float32, copy=True))

    @property
    def data(self) -> np.ndarray:
        if self._data is None:
            raise RuntimeError("InputTensor has been disposed.")
        return self._data

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self.data.shape)

    @property
    def disposed(self) -> bool:
        return self._data is None

    def dispose(self) -> None:
        self._data = None
        self.dispose_count += 1


@dataclass
class DetectionResult:
    """
    Ordered poses plus any auxiliary buffers the model allocated to produce them.
    """

    poses: Tuple[Pose, ...] = ()
    buffers: List[object] = field(default_factory=list)
    disposed: bool = False

    def __iter__(self) -> Iterator[Pose]:
        return iter(self.poses)

    def __len__(self) -> int:
        return len(self.poses)

    def dispose(self) -> None:
        # The shared empty sentinel owns nothing and stays live.
        if self.disposed or self is EMPTY_RESULT:
            return
        for buf in self.buffers:
            release = getattr(buf, "dispose", None)
            if callable(release):
                release()
        self.buffers.clear()
        self.disposed = True


def make_result(poses: Sequence[Pose], buffers: Optional[Sequence[object]] = None) -> DetectionResult:
    return DetectionResult(poses=tuple(poses), buffers=list(buffers or []))


EMPTY_RESULT = DetectionResult()
