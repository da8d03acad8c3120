from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple, Union

import aiohttp
import numpy as np
from loguru import logger

from .config import ModelConfig
from .letterbox import letterbox
from .postprocess import PosePostConfig, PosePostprocessor
from .types import DetectionResult, EstimateParams, InputTensor, make_result


PathLike = Union[str, Path]

BACKEND_SUFFIXES = {
    "onnxruntime": ".onnx",
    "torchscript": ".torchscript",
}


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve a relative models directory.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute paths are returned as-is; relative ones resolve against `root`, or
    the project root when `root` is "auto"/None.
    """

    p = Path(path)
    if p.is_absolute():
        return p
    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()
    return (base / p).resolve()


class PoseNetModel:
    """
    A loaded pose model: preprocess (letterbox) -> inference -> pose decoding.

    `estimate_poses` runs letterboxing and the backend in a worker thread so the
    event loop keeps serving other coroutines while the model computes.
    `dispose()` releases the backend; a disposed model can't be used again.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        config: ModelConfig,
        *,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        post_cfg: PosePostConfig = PosePostConfig(),
    ):
        self._infer_fn: Optional[Callable[[np.ndarray], np.ndarray]] = infer_fn
        self.config = config
        self.backend = backend
        self.backend_name = backend_name
        self.post = PosePostprocessor(post_cfg)

    @property
    def disposed(self) -> bool:
        return self._infer_fn is None

    def preprocess(self, tensor: InputTensor) -> Tuple[np.ndarray, Tuple[int, int], Tuple[float, float], Tuple[float, float]]:
        pixels = tensor.data
        orig_h, orig_w = pixels.shape[:2]
        size = int(self.config.input_resolution)
        img, ratio, pad = letterbox(pixels, new_shape=(size, size))

        # BGR -> RGB, normalize, HWC -> CHW, add batch
        blob = np.ascontiguousarray(img[:, :, ::-1], dtype=np.float32) / 255.0
        blob = np.transpose(blob, (2, 0, 1))[None, ...]
        return blob, (orig_w, orig_h), ratio, pad

    def _forward(self, infer_fn: Callable[[np.ndarray], np.ndarray], tensor: InputTensor):
        blob, orig_size, ratio, pad = self.preprocess(tensor)
        return infer_fn(blob), orig_size, ratio, pad

    async def estimate_poses(self, tensor: InputTensor, params: EstimateParams = EstimateParams()) -> DetectionResult:
        infer_fn = self._infer_fn
        if infer_fn is None:
            raise RuntimeError("PoseNetModel has been disposed.")

        preds, orig_size, ratio, pad = await asyncio.to_thread(self._forward, infer_fn, tensor)
        poses = self.post.process(preds, params, orig_size=orig_size, pad=pad, ratio=ratio)
        return make_result(poses, buffers=[preds])

    def dispose(self) -> None:
        if self._infer_fn is None:
            return
        self._infer_fn = None
        close = getattr(self.backend, "close", None)
        if callable(close):
            close()
        self.backend = None
        logger.debug("Disposed {} model ({})", self.config.architecture, self.backend_name)


async def download_weights(url: str, dest: Path, *, timeout_s: float = 60.0) -> Path:
    """
    Fetch a weights file over HTTP into `dest` (written atomically via a .part file).
    """

    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")
    timeout = aiohttp.ClientTimeout(total=timeout_s)
    logger.info("Downloading model weights from {}", url)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(url) as response:
            response.raise_for_status()
            payload = await response.read()
    tmp.write_bytes(payload)
    tmp.replace(dest)
    return dest


async def resolve_weights(
    config: ModelConfig,
    *,
    models_dir: PathLike = "models",
    weights_base_url: Optional[str] = None,
    backend: Optional[str] = None,
    timeout_s: float = 60.0,
) -> Path:
    """
    Locate the weights file for `config` in `models_dir`, downloading it from
    `weights_base_url` when it is missing.
    """

    root = resolve_path(models_dir)
    if backend is not None:
        suffixes = [BACKEND_SUFFIXES[backend]]
    else:
        suffixes = list(BACKEND_SUFFIXES.values())

    for suffix in suffixes:
        candidate = root / config.weights_filename(suffix)
        if candidate.is_file():
            return candidate

    filename = config.weights_filename(suffixes[0])
    if not weights_base_url:
        raise FileNotFoundError(f"Model weights not found: {root / filename}")
    url = f"{weights_base_url.rstrip('/')}/{filename}"
    return await download_weights(url, root / filename, timeout_s=timeout_s)


def _backend_for(path: Path) -> str:
    suffix = path.suffix.lower()
    for name, ext in BACKEND_SUFFIXES.items():
        if suffix == ext:
            return name
    if suffix in {".ts", ".pt"}:
        return "torchscript"
    raise ValueError(f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly.")


async def load_model(
    config: ModelConfig,
    *,
    models_dir: PathLike = "models",
    weights_base_url: Optional[str] = None,
    backend: Optional[str] = None,
    post_cfg: PosePostConfig = PosePostConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
    torch_half: bool = False,
    timeout_s: float = 60.0,
) -> PoseNetModel:
    """
    Validate `config`, locate (or fetch) its weights and build a `PoseNetModel`.

    Args:
        config: model variant to load
        models_dir: directory holding weights; relative paths resolve against the project root
        weights_base_url: optional remote location to download missing weights from
        backend: "onnxruntime" / "torchscript", or None to infer from the weights file
    """

    config.validate()
    if backend is not None:
        backend = backend.lower()
        if backend not in BACKEND_SUFFIXES:
            raise ValueError(f"Unsupported backend: {backend!r}")

    path = await resolve_weights(
        config,
        models_dir=models_dir,
        weights_base_url=weights_base_url,
        backend=backend,
        timeout_s=timeout_s,
    )
    chosen = backend or _backend_for(path)
    logger.info("Loading {} ({}) from {}", config.architecture, chosen, path)

    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        ort_backend = await asyncio.to_thread(
            OnnxRuntimeBackend, path, OnnxRuntimeBackendConfig(providers=onnx_providers)
        )
        return PoseNetModel(ort_backend.infer, config, backend=ort_backend, backend_name="onnxruntime", post_cfg=post_cfg)

    from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

    ts_backend = await asyncio.to_thread(
        TorchScriptBackend, path, TorchScriptBackendConfig(device=torch_device, half=torch_half)
    )
    return PoseNetModel(ts_backend.infer, config, backend=ts_backend, backend_name="torchscript", post_cfg=post_cfg)
