from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Tuple


ARCHITECTURES: Tuple[str, ...] = ("MobileNetV1", "ResNet50")

VALID_STRIDES: Dict[str, Tuple[int, ...]] = {
    "MobileNetV1": (8, 16),
    "ResNet50": (16, 32),
}

VALID_MULTIPLIERS: Dict[str, Tuple[float, ...]] = {
    "MobileNetV1": (0.5, 0.75, 1.0),
    "ResNet50": (1.0,),
}

VALID_QUANT_BYTES: Tuple[int, ...] = (1, 2, 4)

MIN_INPUT_RESOLUTION = 161
MAX_INPUT_RESOLUTION = 801

DEFAULT_QUANT_BYTES = 2


@dataclass(frozen=True)
class ModelConfig:
    """
    Parameters identifying one PoseNet model variant.

    Mirrors the five fields the model loader needs: backbone, output stride,
    square input resolution, channel multiplier and weight quantization width.
    """

    architecture: str = "MobileNetV1"
    output_stride: int = 16
    input_resolution: int = 513
    multiplier: float = 0.75
    quant_bytes: int = DEFAULT_QUANT_BYTES

    @classmethod
    def for_architecture(cls, architecture: str, *, mobile: bool = False) -> "ModelConfig":
        if architecture == "ResNet50":
            return cls(
                architecture="ResNet50",
                output_stride=32,
                input_resolution=257,
                multiplier=1.0,
                quant_bytes=DEFAULT_QUANT_BYTES,
            )
        if architecture == "MobileNetV1":
            return cls(
                architecture="MobileNetV1",
                output_stride=16,
                input_resolution=513,
                multiplier=0.50 if mobile else 0.75,
                quant_bytes=DEFAULT_QUANT_BYTES,
            )
        raise ValueError(f"Unsupported architecture: {architecture!r}. Expected one of {list(ARCHITECTURES)}")

    def with_changes(self, **changes: object) -> "ModelConfig":
        return replace(self, **changes)

    def validate(self) -> None:
        if self.architecture not in ARCHITECTURES:
            raise ValueError(f"Unsupported architecture: {self.architecture!r}. Expected one of {list(ARCHITECTURES)}")
        strides = VALID_STRIDES[self.architecture]
        if self.output_stride not in strides:
            raise ValueError(f"Invalid output_stride {self.output_stride} for {self.architecture}; expected one of {list(strides)}")
        multipliers = VALID_MULTIPLIERS[self.architecture]
        if self.multiplier not in multipliers:
            raise ValueError(f"Invalid multiplier {self.multiplier} for {self.architecture}; expected one of {list(multipliers)}")
        if self.quant_bytes not in VALID_QUANT_BYTES:
            raise ValueError(f"Invalid quant_bytes {self.quant_bytes}; expected one of {list(VALID_QUANT_BYTES)}")
        if isinstance(self.input_resolution, bool) or not isinstance(self.input_resolution, int):
            raise ValueError("input_resolution must be an integer")
        if not MIN_INPUT_RESOLUTION <= self.input_resolution <= MAX_INPUT_RESOLUTION:
            raise ValueError(
                f"input_resolution must be in [{MIN_INPUT_RESOLUTION}, {MAX_INPUT_RESOLUTION}], got {self.input_resolution}"
            )

    def weights_filename(self, suffix: str = ".onnx") -> str:
        """
        e.g. ``posenet_mobilenetv1_075_stride16_q2.onnx``
        """

        mult = f"{int(round(self.multiplier * 100)):03d}"
        return f"posenet_{self.architecture.lower()}_{mult}_stride{self.output_stride}_q{self.quant_bytes}{suffix}"
