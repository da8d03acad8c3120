from typing import Tuple

import numpy as np


def letterbox(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (513, 513),
    color: Tuple[int, int, int] = (0, 0, 0),
):
    """
    Resize `image` to fit inside `new_shape` (w, h) keeping its aspect ratio, then
    pad the remainder evenly on both sides.

    Returns:
        padded: resized + padded image
        ratio: (w_ratio, h_ratio)
        pad: (dw, dh) padding applied on the left/top
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    if isinstance(new_shape, int):
        new_shape = (new_shape, new_shape)

    h, w = image.shape[:2]
    new_w, new_h = new_shape
    if h <= 0 or w <= 0:
        raise ValueError(f"Cannot letterbox an empty image of shape {image.shape}")

    r = min(new_w / w, new_h / h)
    resized_w, resized_h = int(round(w * r)), int(round(h * r))
    dw = (new_w - resized_w) / 2
    dh = (new_h - resized_h) / 2

    if (w, h) != (resized_w, resized_h):
        image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    top, bottom = int(round(dh - 0.1)), int(round(dh + 0.1))
    left, right = int(round(dw - 0.1)), int(round(dw + 0.1))
    padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)

    return padded, (r, r), (dw, dh)
