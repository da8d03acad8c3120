from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from pose_kit.config import ModelConfig

from .errors import ModelLoadFailure
from .state import SessionState
from .status import StatusDisplay, loading_ui


ModelLoader = Callable[[ModelConfig], Awaitable[Any]]


class ModelManager:
    """
    Owns `SessionState.active_model`.

    A reload releases the current model before the new one is requested, so at
    most one model is resident at a time. Reloads are serialized.
    """

    def __init__(self, loader: ModelLoader, status: StatusDisplay):
        self._loader = loader
        self._status = status
        self._lock = asyncio.Lock()

    async def reload_model(
        self,
        state: SessionState,
        config: Optional[ModelConfig] = None,
        *,
        is_current: Optional[Callable[[], bool]] = None,
    ) -> Any:
        """
        Replace `state.active_model` with a model built from `config`.

        When `is_current` reports False once the lock is held, the caller has been
        superseded: nothing is disposed or loaded and None is returned.
        """

        async with self._lock:
            if is_current is not None and not is_current():
                logger.info("Skipping model load for a superseded flow")
                return None
            config = config if config is not None else state.model
            self.dispose(state)

            try:
                with loading_ui(self._status):
                    handle = await self._loader(config)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Model load failed for {}: {}", config, exc)
                raise ModelLoadFailure(f"Failed to load {config.architecture} model: {exc}") from exc

            state.active_model = handle
            logger.info(
                "Loaded {} (stride={}, input={}, multiplier={}, quant_bytes={})",
                config.architecture,
                config.output_stride,
                config.input_resolution,
                config.multiplier,
                config.quant_bytes,
            )
            return handle

    async def current_model(self, state: SessionState) -> Any:
        """
        The active model once any in-flight reload has settled.
        """

        async with self._lock:
            return state.active_model

    @staticmethod
    def dispose(state: SessionState) -> None:
        handle = state.active_model
        if handle is None:
            return
        state.active_model = None
        handle.dispose()
