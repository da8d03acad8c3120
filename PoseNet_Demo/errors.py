from __future__ import annotations


class PoseDemoError(Exception):
    """Base class for failures that abort a demo flow."""


class LoadFailure(PoseDemoError):
    """An image could not be fetched or decoded."""


class ModelLoadFailure(PoseDemoError):
    """The pose model could not be constructed."""


class InferenceFailure(PoseDemoError):
    """Pose detection failed for the current input."""
