from __future__ import annotations

from loguru import logger

from pose_kit.types import EMPTY_RESULT, DetectionResult


class ResultStore:
    """
    Holds the latest detection result. A replaced or cleared result is disposed
    before the store lets go of it, so at most one result is ever live here.
    """

    def __init__(self) -> None:
        self._result: DetectionResult = EMPTY_RESULT

    def get_result(self) -> DetectionResult:
        return self._result

    @property
    def has_result(self) -> bool:
        return self._result is not EMPTY_RESULT

    def set_result(self, result: DetectionResult) -> None:
        if result is self._result:
            return
        self._release()
        self._result = result

    def clear(self) -> None:
        self._release()
        self._result = EMPTY_RESULT

    def _release(self) -> None:
        previous = self._result
        if previous is EMPTY_RESULT:
            return
        previous.dispose()
        logger.debug("Disposed previous result ({} pose(s))", len(previous.poses))
