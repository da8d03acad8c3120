from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import aiohttp
import cv2
import numpy as np
from loguru import logger

from .errors import LoadFailure


IMAGE_BUCKET = "https://storage.googleapis.com/tfjs-models/assets/posenet/"

IMAGES = (
    "frisbee.jpg",
    "frisbee_2.jpg",
    "backpackman.jpg",
    "boy_doughnut.jpg",
    "soccer.png",
    "with_computer.jpg",
    "snowboard.jpg",
    "person_bench.jpg",
    "skiing.jpg",
    "fire_hydrant.jpg",
    "kyte.jpg",
    "looking_at_computer.jpg",
    "tennis.jpg",
    "tennis_standing.jpg",
    "truck.jpg",
    "on_bus.jpg",
    "tie_with_beer.jpg",
    "baseball.jpg",
    "multi_skiing.jpg",
    "riding_elephant.jpg",
    "skate_park_venice.jpg",
    "skate_park.jpg",
    "tennis_in_crowd.jpg",
    "two_on_bench.jpg",
)


@dataclass(frozen=True)
class LoadedImage:
    """
    Decoded BGR image (H, W, 3 uint8). The pixel buffer is read-only.
    """

    image_id: str
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {self.pixels.shape}")
        self.pixels.setflags(write=False)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


def decode_image(image_id: str, payload: bytes) -> LoadedImage:
    buf = np.frombuffer(payload, dtype=np.uint8)
    pixels = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
    if pixels is None:
        raise LoadFailure(f"Could not decode image {image_id!r}")
    return LoadedImage(image_id=image_id, pixels=pixels)


class ImageSource:
    """
    Resolves demo image ids to decoded images.

    The location of an image is `base_url + image_id`. An http(s) base is fetched
    with aiohttp; anything else is treated as a local directory. Every load is
    bounded by `timeout_s` and fails with `LoadFailure` instead of hanging.
    No retries.
    """

    def __init__(
        self,
        base_url: str = IMAGE_BUCKET,
        *,
        timeout_s: float = 10.0,
        images: Sequence[str] = IMAGES,
    ):
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        self.base_url = base_url
        self.timeout_s = float(timeout_s)
        self.images = tuple(images)

    @property
    def is_remote(self) -> bool:
        return self.base_url.startswith(("http://", "https://"))

    def location(self, image_id: str) -> str:
        if self.is_remote:
            return f"{self.base_url}{image_id}"
        return str(Path(self.base_url) / image_id)

    async def load_image(self, image_id: str) -> LoadedImage:
        if image_id not in self.images:
            raise LoadFailure(f"Unknown image id: {image_id!r}")

        location = self.location(image_id)
        logger.debug("Loading image {}", location)
        try:
            payload = await asyncio.wait_for(self._fetch_bytes(location), timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            raise LoadFailure(f"Timed out after {self.timeout_s:.1f}s loading {location}") from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise LoadFailure(f"Failed to load {location}: {exc}") from exc

        return decode_image(image_id, payload)

    async def _fetch_bytes(self, location: str) -> bytes:
        if not self.is_remote:
            return await asyncio.to_thread(Path(location).read_bytes)

        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(location) as response:
                response.raise_for_status()
                return await response.read()
