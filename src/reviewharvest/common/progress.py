"""Progress channel abstractions.

The channel is fire-and-forget: publishers never wait on consumers and a
failing consumer never interrupts the crawl.
"""

from __future__ import annotations

import abc
from typing import Callable

from .constants import Severity
from .logger import get_logger
from .types import ProgressEvent

logger = get_logger(__name__)


class ProgressChannel(abc.ABC):
    """Abstract progress channel."""

    @abc.abstractmethod
    def publish(self, event: ProgressEvent) -> None:
        """Deliver a single event."""

    def emit(
        self,
        message: str,
        severity: Severity | str = Severity.INFO,
        replace_previous: bool = False,
    ) -> None:
        event = ProgressEvent(
            message=message,
            severity=Severity(severity),
            replace_previous=replace_previous,
        )
        try:
            self.publish(event)
        except Exception as exc:  # noqa: BLE001
            logger.debug(f"[Progress] 进度事件投递失败: {exc}")


class MemoryProgressChannel(ProgressChannel):
    """Keeps every event in order; used by embedding UIs and tests."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def publish(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def lines(self) -> list[str]:
        """Rendered view: replace_previous overwrites the last line."""
        rendered: list[str] = []
        for event in self.events:
            if event.replace_previous and rendered:
                rendered[-1] = event.message
            else:
                rendered.append(event.message)
        return rendered


class LoggingProgressChannel(ProgressChannel):
    """Forwards events to the project logger."""

    _LEVELS = {
        Severity.INFO: "info",
        Severity.SUCCESS: "info",
        Severity.WARNING: "warning",
        Severity.ERROR: "error",
    }

    def __init__(self, name: str = "reviewharvest.progress") -> None:
        self._logger = get_logger(name)
        self._last_replaced: str | None = None

    def publish(self, event: ProgressEvent) -> None:
        # 覆盖类事件（倒计时）只在内容变化时输出
        if event.replace_previous:
            if event.message == self._last_replaced:
                return
            self._last_replaced = event.message
        else:
            self._last_replaced = None
        getattr(self._logger, self._LEVELS[event.severity])(event.message)


class CallbackProgressChannel(ProgressChannel):
    """Adapts a plain callable (message, severity, replace_previous) to a channel."""

    def __init__(self, callback: Callable[[str, str, bool], None]) -> None:
        self._callback = callback

    def publish(self, event: ProgressEvent) -> None:
        self._callback(event.message, event.severity.value, event.replace_previous)
