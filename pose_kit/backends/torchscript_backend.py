from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np


PathLike = Union[str, Path]


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    Configuration for TorchScript inference.

    - device: torch device the pose model and its input blob live on
    - half: feed the blob as float16 for half-precision exports
    - output_index: which element holds the pose rows when the module returns a tuple
    """

    device: str = "cpu"
    half: bool = False
    output_index: int = 0


class TorchScriptBackend:
    """
    TorchScript export of a multi-person pose model, loaded with `torch.jit.load`.

    `infer` returns the pose rows `(1, N, 5+3K)` (or the anchors layout) as a
    float32 NumPy array on the CPU, whatever precision the model ran in.
    """

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("torch is required for the TorchScript backend. Install with `pip install torch`.") from e

        self._torch = torch
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self.device = torch.device(cfg.device)
        self.half = cfg.half
        self.output_index = cfg.output_index

        model = torch.jit.load(str(self.model_path), map_location=self.device)
        model.eval()
        self.model = model

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if self.model is None:
            raise RuntimeError("TorchScript model has been closed.")
        torch = self._torch
        x = torch.as_tensor(blob, device=self.device)
        x = x.half() if self.half else x.float()

        with torch.no_grad():
            y = self.model(x.contiguous())

        if isinstance(y, (tuple, list)):
            y = y[self.output_index]
        return y.detach().float().to("cpu").numpy()

    def close(self) -> None:
        self.model = None
        if self.device.type == "cuda":
            self._torch.cuda.empty_cache()
