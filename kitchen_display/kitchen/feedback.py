"""Toast messages for the kitchen screen"""

from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, List, Optional

import structlog

from kitchen_display.schemas.kitchen import Feedback, FeedbackLevel

logger = structlog.get_logger()

TIMED_OUT = "Request timed out. Please try again."


class FeedbackLog:
    """Bounded queue of toasts the display drains"""

    def __init__(self, maxlen: int = 50, clock: Optional[Callable[[], datetime]] = None):
        self._entries: Deque[Feedback] = deque(maxlen=maxlen)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self._entries)

    def info(self, message: str) -> None:
        self._push(FeedbackLevel.INFO, message)

    def success(self, message: str) -> None:
        self._push(FeedbackLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        self._push(FeedbackLevel.ERROR, message)

    def peek(self) -> List[Feedback]:
        return list(self._entries)

    def drain(self) -> List[Feedback]:
        entries = list(self._entries)
        self._entries.clear()
        return entries

    def _push(self, level: FeedbackLevel, message: str) -> None:
        logger.info("Kitchen feedback", level=level.value, message=message)
        self._entries.append(Feedback(level=level, message=message, timestamp=self._clock()))
