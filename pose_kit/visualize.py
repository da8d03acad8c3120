from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from .types import CONNECTED_PARTS, Keypoint


Color = Tuple[int, int, int]
Scale = Tuple[float, float]

# BGR (OpenCV order)
KEYPOINT_COLOR: Color = (255, 255, 0)
SKELETON_COLOR: Color = (255, 255, 0)
BOUNDING_BOX_COLOR: Color = (0, 0, 255)
LINE_WIDTH = 2
KEYPOINT_RADIUS = 3


class Canvas(Protocol):
    """
    2-D raster surface the renderer draws on.
    """

    def draw_image(self, pixels: np.ndarray, size: Tuple[int, int]) -> None: ...

    def draw_point(self, x: float, y: float, radius: int, color: Color) -> None: ...

    def draw_segment(self, a: Tuple[float, float], b: Tuple[float, float], color: Color, thickness: int) -> None: ...

    def draw_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None: ...


class CvCanvas:
    """
    OpenCV-backed canvas over a BGR image; `pixels` holds the current drawing.
    """

    def __init__(self, size: Tuple[int, int] = (513, 513)):
        w, h = size
        self.pixels = np.zeros((h, w, 3), dtype=np.uint8)

    @staticmethod
    def _cv2():
        try:
            import cv2  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("OpenCV is required for CvCanvas. Install with `pip install opencv-python`.") from e
        return cv2

    @property
    def size(self) -> Tuple[int, int]:
        h, w = self.pixels.shape[:2]
        return w, h

    def draw_image(self, pixels: np.ndarray, size: Tuple[int, int]) -> None:
        if pixels is None or not hasattr(pixels, "shape"):
            raise TypeError("pixels must be a NumPy array (BGR).")
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(pixels, 'shape', None)}")
        cv2 = self._cv2()
        img = np.clip(pixels, 0, 255).astype(np.uint8)
        if (img.shape[1], img.shape[0]) != tuple(size):
            img = cv2.resize(img, tuple(size), interpolation=cv2.INTER_LINEAR)
        self.pixels = img.copy()

    def draw_point(self, x: float, y: float, radius: int, color: Color) -> None:
        self._cv2().circle(self.pixels, (int(round(x)), int(round(y))), radius, color, thickness=-1)

    def draw_segment(self, a: Tuple[float, float], b: Tuple[float, float], color: Color, thickness: int) -> None:
        p1 = (int(round(a[0])), int(round(a[1])))
        p2 = (int(round(b[0])), int(round(b[1])))
        self._cv2().line(self.pixels, p1, p2, color, thickness=thickness)

    def draw_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None:
        p1 = (int(round(x)), int(round(y)))
        p2 = (int(round(x + w)), int(round(y + h)))
        self._cv2().rectangle(self.pixels, p1, p2, color, thickness=1)


def _scaled(kp: Keypoint, scale: Scale) -> Tuple[float, float]:
    return kp.x * scale[0], kp.y * scale[1]


def get_adjacent_keypoints(keypoints: Sequence[Keypoint], min_confidence: float) -> List[Tuple[Keypoint, Keypoint]]:
    """
    Skeleton edges whose two end keypoints both reach `min_confidence`.
    """

    by_part: Dict[str, Keypoint] = {kp.part: kp for kp in keypoints}
    pairs: List[Tuple[Keypoint, Keypoint]] = []
    for a, b in CONNECTED_PARTS:
        kp_a, kp_b = by_part.get(a), by_part.get(b)
        if kp_a is None or kp_b is None:
            continue
        if kp_a.score >= min_confidence and kp_b.score >= min_confidence:
            pairs.append((kp_a, kp_b))
    return pairs


def get_bounding_box(keypoints: Iterable[Keypoint]) -> Optional[Tuple[float, float, float, float]]:
    """
    (min_x, min_y, max_x, max_y) over every keypoint, or None when there are none.
    """

    xs: List[float] = []
    ys: List[float] = []
    for kp in keypoints:
        xs.append(kp.x)
        ys.append(kp.y)
    if not xs:
        return None
    return min(xs), min(ys), max(xs), max(ys)


def draw_keypoints(
    keypoints: Sequence[Keypoint],
    min_confidence: float,
    canvas: Canvas,
    scale: Scale = (1.0, 1.0),
    color: Color = KEYPOINT_COLOR,
) -> int:
    drawn = 0
    for kp in keypoints:
        if kp.score < min_confidence:
            continue
        x, y = _scaled(kp, scale)
        canvas.draw_point(x, y, KEYPOINT_RADIUS, color)
        drawn += 1
    return drawn


def draw_skeleton(
    keypoints: Sequence[Keypoint],
    min_confidence: float,
    canvas: Canvas,
    scale: Scale = (1.0, 1.0),
    color: Color = SKELETON_COLOR,
) -> int:
    pairs = get_adjacent_keypoints(keypoints, min_confidence)
    for a, b in pairs:
        canvas.draw_segment(_scaled(a, scale), _scaled(b, scale), color, LINE_WIDTH)
    return len(pairs)


def draw_bounding_box(
    keypoints: Sequence[Keypoint],
    canvas: Canvas,
    scale: Scale = (1.0, 1.0),
    color: Color = BOUNDING_BOX_COLOR,
) -> bool:
    # Spans all keypoints; part confidence is not applied here.
    box = get_bounding_box(keypoints)
    if box is None:
        return False
    min_x, min_y, max_x, max_y = box
    sx, sy = scale
    canvas.draw_rect(min_x * sx, min_y * sy, (max_x - min_x) * sx, (max_y - min_y) * sy, color)
    return True
