from __future__ import annotations

import functools
from typing import Optional, Sequence

from loguru import logger

from pose_kit.runtime import load_model
from pose_kit.types import DetectionResult, InputTensor
from pose_kit.visualize import Canvas, CvCanvas

from .errors import PoseDemoError
from .image_source import IMAGE_BUCKET, ImageSource, LoadedImage
from .inference import TensorFactory, run_inference
from .model_manager import ModelManager
from .renderer import TARGET_SIZE, render
from .result_store import ResultStore
from .state import SessionState
from .status import LogStatusDisplay, StatusDisplay


class PoseDemo:
    """
    Model reload -> image load -> inference -> result store -> render, each
    stage awaiting the previous one.

    Every flow takes a generation number. A flow that is overtaken by a newer
    one stops at its next suspension point, disposes anything it produced and
    returns None, so a stale result never overwrites a newer one.
    """

    def __init__(
        self,
        state: SessionState,
        image_source: ImageSource,
        model_manager: ModelManager,
        status: StatusDisplay,
        canvas: Optional[Canvas] = None,
        store: Optional[ResultStore] = None,
        *,
        tensor_factory: TensorFactory = InputTensor.from_image,
    ):
        self.state = state
        self.image_source = image_source
        self.model_manager = model_manager
        self.status = status
        self.canvas: Canvas = canvas if canvas is not None else CvCanvas(TARGET_SIZE)
        self.store = store if store is not None else ResultStore()
        self.image: Optional[LoadedImage] = None
        self._tensor_factory = tensor_factory
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def bind_page(self) -> Optional[DetectionResult]:
        """
        Load the configured model, then estimate poses on the configured image.
        """

        return await self.reload_and_estimate()

    async def reload_and_estimate(self) -> Optional[DetectionResult]:
        generation = self._next_generation()
        try:
            await self.model_manager.reload_model(self.state, is_current=lambda: self._is_current(generation))
            if not self._is_current(generation):
                logger.info("Flow {} superseded after model load", generation)
                return None
            return await self._estimate(generation)
        except PoseDemoError as exc:
            return self._handle_failure(generation, exc)

    async def estimate_poses(self) -> Optional[DetectionResult]:
        """
        Estimate poses on the configured image with the model already loaded.
        """

        generation = self._next_generation()
        try:
            return await self._estimate(generation)
        except PoseDemoError as exc:
            return self._handle_failure(generation, exc)

    async def _estimate(self, generation: int) -> Optional[DetectionResult]:
        self.status.set_status_text("Predicting...")
        self.status.show_results(False)

        image = await self.image_source.load_image(self.state.image_id)
        if not self._is_current(generation):
            logger.info("Flow {} superseded after image load", generation)
            return None

        # Waits out a reload that is still in flight.
        handle = await self.model_manager.current_model(self.state)
        if not self._is_current(generation):
            logger.info("Flow {} superseded while waiting for the model", generation)
            return None

        result = await run_inference(
            handle,
            image,
            self.state.detection,
            tensor_factory=self._tensor_factory,
        )
        if not self._is_current(generation):
            logger.info("Flow {} superseded after inference; discarding its result", generation)
            result.dispose()
            return None

        self.store.set_result(result)
        self.image = image
        self.redraw()

        self.status.set_status_text("")
        self.status.show_results(True)
        return result

    def _handle_failure(self, generation: int, exc: PoseDemoError) -> None:
        if not self._is_current(generation):
            logger.warning("Ignoring failure of superseded flow {}: {}", generation, exc)
            return None
        logger.error("Flow {} failed: {}", generation, exc)
        self.status.set_status_text(f"Error: {exc}")
        raise exc

    def redraw(self) -> None:
        """
        Re-render the stored result with the current thresholds and display flags.
        """

        if self.image is None:
            return
        detection = self.state.detection
        render(
            self.canvas,
            self.image,
            self.store.get_result(),
            detection.min_part_confidence,
            detection.min_pose_confidence,
            self.state.display,
        )

    async def close(self) -> None:
        self._next_generation()
        self.store.clear()
        self.model_manager.dispose(self.state)


def build_demo(
    state: Optional[SessionState] = None,
    *,
    images_base: str = IMAGE_BUCKET,
    image_timeout_s: float = 10.0,
    models_dir: str = "models",
    weights_base_url: Optional[str] = None,
    backend: Optional[str] = None,
    onnx_providers: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
    status: Optional[StatusDisplay] = None,
) -> PoseDemo:
    """
    Wire a `PoseDemo` to the real model loader, image source and an OpenCV canvas.
    """

    state = state if state is not None else SessionState()
    status = status if status is not None else LogStatusDisplay()
    loader = functools.partial(
        load_model,
        models_dir=models_dir,
        weights_base_url=weights_base_url,
        backend=backend,
        onnx_providers=onnx_providers,
        torch_device=torch_device,
    )
    return PoseDemo(
        state,
        ImageSource(images_base, timeout_s=image_timeout_s),
        ModelManager(loader, status),
        status,
    )
