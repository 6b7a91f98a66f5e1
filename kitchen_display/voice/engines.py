"""Speech recognition and synthesis engines"""

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from typing import AsyncGenerator, Deque, List, Optional

import structlog

from kitchen_display.errors import SpeechRecognitionError
from kitchen_display.schemas.voice import RecognitionResultIn

logger = structlog.get_logger()


class SpeechRecognizer(ABC):
    """Streaming speech recognizer"""

    @abstractmethod
    def listen(
        self,
        continuous: bool,
        interim_results: bool,
        max_alternatives: int = 1,
    ) -> AsyncGenerator[RecognitionResultIn, None]:
        """
        Yield recognition results until the engine ends the session.

        Continuous sessions run until stopped; single-shot sessions end after
        the first final result. Engine errors are raised as
        SpeechRecognitionError.
        """

    @abstractmethod
    async def stop(self) -> None:
        """End the current session, if any"""

    def push(self, result: RecognitionResultIn) -> bool:
        """Hand in a result produced outside this process; False when not accepted"""
        return False


class SpeechSynthesizer(ABC):
    """Text-to-speech output"""

    @abstractmethod
    async def speak(self, text: str) -> None:
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Drop anything queued or being spoken"""


_END = object()


class QueueRecognizer(SpeechRecognizer):
    """
    Recognizer fed by the display.

    The browser runs the actual speech engine and posts its results; they are
    queued here and replayed to whoever is listening. Results posted while no
    session is open are dropped.
    """

    def __init__(self, name: str = "recognizer"):
        self.name = name
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()
        self._session = 0
        self._listening = False
        self.continuous = False
        self.interim_results = False
        self.max_alternatives = 1

    @property
    def listening(self) -> bool:
        return self._listening

    def push(self, result: RecognitionResultIn) -> bool:
        if not self._listening:
            logger.debug("Dropped recognition result", recognizer=self.name)
            return False
        self._queue.put_nowait(result)
        return True

    async def listen(
        self,
        continuous: bool,
        interim_results: bool,
        max_alternatives: int = 1,
    ) -> AsyncGenerator[RecognitionResultIn, None]:
        self._drain()
        self._session += 1
        session = self._session
        self._listening = True
        self.continuous = continuous
        self.interim_results = interim_results
        self.max_alternatives = max_alternatives
        logger.debug("Recognition started", recognizer=self.name, continuous=continuous)
        try:
            while True:
                item = await self._queue.get()
                if item is _END:
                    return
                result: RecognitionResultIn = item
                if result.error:
                    raise SpeechRecognitionError(result.error)
                if result.alternatives and (result.is_final or interim_results):
                    yield result.model_copy(update={"alternatives": result.alternatives[:max_alternatives]})
                if result.ended or (result.is_final and not continuous):
                    return
        finally:
            if self._session == session:
                self._listening = False
                logger.debug("Recognition ended", recognizer=self.name)

    async def stop(self) -> None:
        if self._listening:
            self._queue.put_nowait(_END)

    def _drain(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()


class QueueSynthesizer(SpeechSynthesizer):
    """Collects utterances for the display to speak"""

    def __init__(self, maxlen: int = 20):
        self._pending: Deque[str] = deque(maxlen=maxlen)

    async def speak(self, text: str) -> None:
        logger.info("Speaking", text=text)
        self._pending.append(text)

    def cancel(self) -> None:
        self._pending.clear()

    def drain(self) -> List[str]:
        utterances = list(self._pending)
        self._pending.clear()
        return utterances

    def peek(self) -> Optional[str]:
        return self._pending[-1] if self._pending else None
