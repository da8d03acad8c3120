from __future__ import annotations

from typing import Optional, Tuple

from loguru import logger

from pose_kit.types import DetectionResult
from pose_kit.visualize import Canvas, draw_bounding_box, draw_keypoints, draw_skeleton

from .image_source import LoadedImage
from .state import DisplayFlags


TARGET_SIZE: Tuple[int, int] = (513, 513)


def render(
    canvas: Canvas,
    image: LoadedImage,
    result: DetectionResult,
    min_part_confidence: float,
    min_pose_confidence: float,
    display: Optional[DisplayFlags] = None,
    target_size: Tuple[int, int] = TARGET_SIZE,
) -> None:
    """
    Draw `image` at `target_size`, then every pose scoring at least
    `min_pose_confidence`. Keypoints and skeleton edges are filtered by
    `min_part_confidence`; the bounding box spans all of a pose's keypoints.
    """

    display = display if display is not None else DisplayFlags()
    canvas.draw_image(image.pixels, target_size)
    scale = (target_size[0] / image.width, target_size[1] / image.height)

    count = 0
    for pose in result.poses:
        if pose.score < min_pose_confidence:
            continue
        count += 1
        if display.show_keypoints:
            draw_keypoints(pose.keypoints, min_part_confidence, canvas, scale)
        if display.show_skeleton:
            draw_skeleton(pose.keypoints, min_part_confidence, canvas, scale)
        if display.show_bounding_box:
            draw_bounding_box(pose.keypoints, canvas, scale)

    logger.info("Rendered {} of {} pose(s) for {}", count, len(result.poses), image.image_id)
