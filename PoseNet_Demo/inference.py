from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from loguru import logger

from pose_kit.types import DetectionResult, EstimateParams, InputTensor

from .errors import InferenceFailure
from .image_source import LoadedImage
from .state import DetectionParams


TensorFactory = Callable[[Any], InputTensor]


def estimate_params(params: DetectionParams) -> EstimateParams:
    return EstimateParams(
        flip_horizontal=False,
        decoding_method="multi-person",
        max_detections=params.max_detections,
        score_threshold=params.min_part_confidence,
        nms_radius=params.nms_radius,
    )


@contextmanager
def input_tensor(image: LoadedImage, factory: TensorFactory = InputTensor.from_image) -> Iterator[InputTensor]:
    """
    Scoped input tensor: released exactly once when the block exits, however it exits.
    """

    tensor = factory(image.pixels)
    try:
        yield tensor
    finally:
        tensor.dispose()


async def run_inference(
    handle: Any,
    image: LoadedImage,
    params: DetectionParams,
    *,
    tensor_factory: TensorFactory = InputTensor.from_image,
) -> DetectionResult:
    """
    Convert `image` to an input tensor, run multi-person detection with `params`
    and return the model's result. Detection errors surface as `InferenceFailure`.
    """

    if handle is None:
        raise InferenceFailure("No model loaded")

    bundle = estimate_params(params)
    with input_tensor(image, tensor_factory) as tensor:
        try:
            result = await handle.estimate_poses(tensor, bundle)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise InferenceFailure(f"Pose estimation failed on {image.image_id!r}: {exc}") from exc

    logger.debug("Estimated {} pose(s) on {}", len(result.poses), image.image_id)
    return result
