from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Protocol

from loguru import logger


class StatusDisplay(Protocol):
    def set_status_text(self, text: str) -> None: ...

    def toggle_loading_ui(self, show: bool) -> None: ...

    def show_results(self, visible: bool) -> None: ...


class LogStatusDisplay:
    """
    Headless status sink: keeps the last status/loading/results state and logs changes.
    """

    def __init__(self) -> None:
        self.text = ""
        self.loading = False
        self.results_visible = False

    def set_status_text(self, text: str) -> None:
        self.text = text
        if text:
            logger.info("status: {}", text)

    def toggle_loading_ui(self, show: bool) -> None:
        self.loading = bool(show)
        logger.debug("loading ui {}", "on" if show else "off")

    def show_results(self, visible: bool) -> None:
        self.results_visible = bool(visible)


@contextmanager
def loading_ui(status: StatusDisplay) -> Iterator[None]:
    status.toggle_loading_ui(True)
    try:
        yield
    finally:
        status.toggle_loading_ui(False)
