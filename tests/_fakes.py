from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pose_kit.config import ModelConfig
from pose_kit.types import PART_NAMES, DetectionResult, EstimateParams, InputTensor, Keypoint, Pose, make_result
from PoseNet_Demo.image_source import LoadedImage


def make_pose(score: float, part_scores: Sequence[float], points: Optional[Sequence[Tuple[float, float]]] = None) -> Pose:
    if points is None:
        points = [(10.0 + 10.0 * i, 20.0 + 5.0 * i) for i in range(len(part_scores))]
    return Pose(
        score=score,
        keypoints=tuple(
            Keypoint(part=PART_NAMES[i], x=float(x), y=float(y), score=float(s))
            for i, ((x, y), s) in enumerate(zip(points, part_scores))
        ),
    )


def make_image(image_id: str = "tennis_in_crowd.jpg", size: Tuple[int, int] = (513, 513)) -> LoadedImage:
    w, h = size
    return LoadedImage(image_id=image_id, pixels=np.zeros((h, w, 3), dtype=np.uint8))


class FakeBuffer:
    def __init__(self, name: str, events: Optional[List[str]] = None):
        self.name = name
        self.events = events if events is not None else []
        self.released = False

    def dispose(self) -> None:
        self.released = True
        self.events.append(f"release:{self.name}")


class FakeModel:
    """
    Stand-in for a loaded pose model; records dispose/estimate calls in `events`.
    """

    def __init__(
        self,
        name: str,
        events: List[str],
        poses: Sequence[Pose] = (),
        *,
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.name = name
        self.events = events
        self.poses = tuple(poses)
        self.error = error
        self.gate = gate
        self.disposed = False
        self.calls: List[Tuple[Tuple[int, ...], EstimateParams]] = []

    async def estimate_poses(self, tensor: InputTensor, params: EstimateParams) -> DetectionResult:
        self.calls.append((tensor.shape, params))
        self.events.append(f"estimate:{self.name}")
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.disposed:
            raise RuntimeError("PoseNetModel has been disposed.")
        return make_result(self.poses, buffers=[FakeBuffer(self.name, self.events)])

    def dispose(self) -> None:
        self.disposed = True
        self.events.append(f"dispose:{self.name}")


class FakeLoader:
    """
    Async model factory; each load returns the next queued model (or raises).
    """

    def __init__(self, events: List[str], models: Sequence[object] = ()):
        self.events = events
        self.queue = list(models)
        self.configs: List[ModelConfig] = []
        self.count = 0

    async def __call__(self, config: ModelConfig):
        self.count += 1
        self.configs.append(config)
        self.events.append(f"load:{self.count}")
        await asyncio.sleep(0)
        item = self.queue.pop(0) if self.queue else FakeModel(f"m{self.count}", self.events)
        if isinstance(item, Exception):
            raise item
        return item


class FakeImageSource:
    def __init__(self, size: Tuple[int, int] = (513, 513), gates: Optional[dict] = None):
        self.size = size
        self.loaded: List[str] = []
        self.gates = gates or {}

    async def load_image(self, image_id: str) -> LoadedImage:
        self.loaded.append(image_id)
        gate = self.gates.get(image_id)
        if gate is not None:
            await gate.wait()
        await asyncio.sleep(0)
        return make_image(image_id, self.size)


class RecordingStatus:
    def __init__(self) -> None:
        self.events: List[Tuple[str, object]] = []
        self.text = ""
        self.loading = False
        self.results_visible = False

    def set_status_text(self, text: str) -> None:
        self.text = text
        self.events.append(("text", text))

    def toggle_loading_ui(self, show: bool) -> None:
        self.loading = show
        self.events.append(("loading", show))

    def show_results(self, visible: bool) -> None:
        self.results_visible = visible
        self.events.append(("results", visible))


class RecordingCanvas:
    def __init__(self) -> None:
        self.images: List[Tuple[Tuple[int, ...], Tuple[int, int]]] = []
        self.points: List[Tuple[float, float]] = []
        self.segments: List[Tuple[Tuple[float, float], Tuple[float, float]]] = []
        self.rects: List[Tuple[float, float, float, float]] = []

    def draw_image(self, pixels, size) -> None:
        self.images.append((tuple(pixels.shape), tuple(size)))

    def draw_point(self, x, y, radius, color) -> None:
        self.points.append((x, y))

    def draw_segment(self, a, b, color, thickness) -> None:
        self.segments.append((tuple(a), tuple(b)))

    def draw_rect(self, x, y, w, h, color) -> None:
        self.rects.append((x, y, w, h))
