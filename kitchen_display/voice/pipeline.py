"""Voice command pipeline"""

import asyncio
import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

import structlog

from kitchen_display.errors import InterpretationError, SpeechRecognitionError
from kitchen_display.kitchen.feedback import FeedbackLog
from kitchen_display.kitchen.numbering import OrderNumberMap
from kitchen_display.kitchen.scheduler import Scheduler, TimerHandle
from kitchen_display.kitchen.store import OrderStore
from kitchen_display.schemas.voice import (
    IntentRequest,
    RecognitionAlternativeIn,
    RecognitionResultIn,
    VoiceSession,
    VoiceState,
)
from kitchen_display.voice.dispatcher import ALLOWED_ACTIONS, CommandDispatcher
from kitchen_display.voice.engines import SpeechRecognizer, SpeechSynthesizer
from kitchen_display.voice.interpreter import IntentInterpreter

logger = structlog.get_logger()

ACTIVE_SECONDS = 60 * 60
COMMAND_TIMEOUT_SECONDS = 10.0
COMMAND_ALTERNATIVES = 3
RESUME_AFTER_END_SECONDS = 2.0
RESUME_AFTER_ERROR_SECONDS = 1.0
WAKE_WORD_RESTART_SECONDS = 0.5

ACKNOWLEDGE = "Yes, I'm listening. What would you like me to do?"
COULD_NOT_PROCESS = "Sorry, I couldn't process that command. Please try again."

_NON_WORD = re.compile(r"[^a-z0-9]+")


class VoicePhase(str, Enum):
    IDLE = "idle"
    WAKE_WORD = "wake_word"
    COMMAND = "command"


def normalize_speech(text: str) -> str:
    """Lowercase, punctuation-free, single-spaced"""
    return " ".join(_NON_WORD.sub(" ", text.lower()).split())


def contains_wake_word(text: str, wake_word: str) -> bool:
    return normalize_speech(wake_word) in normalize_speech(text)


def strip_wake_word(text: str, wake_word: str) -> str:
    """Drop everything up to and including the wake word"""
    spoken = normalize_speech(text)
    wake = normalize_speech(wake_word)
    index = spoken.find(wake)
    if index < 0:
        return spoken
    return spoken[index + len(wake):].strip()


class VoicePipeline:
    """
    Hands-free control of the kitchen screen.

    idle -> wake_word -> command -> wake_word ... -> idle. Activation opens a
    one-hour session; every timer and listening task is owned by the
    scheduler and cancelled on deactivation; a command already heard still
    runs to completion. While active, spoken order
    numbers are recomputed on every store change.
    """

    def __init__(
        self,
        store: OrderStore,
        dispatcher: CommandDispatcher,
        interpreter: IntentInterpreter,
        scheduler: Scheduler,
        wake_recognizer: SpeechRecognizer,
        command_recognizer: SpeechRecognizer,
        synthesizer: SpeechSynthesizer,
        feedback: Optional[FeedbackLog] = None,
        wake_word: str = "code work",
        active_seconds: float = ACTIVE_SECONDS,
        command_timeout: float = COMMAND_TIMEOUT_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.interpreter = interpreter
        self.scheduler = scheduler
        self.wake_recognizer = wake_recognizer
        self.command_recognizer = command_recognizer
        self.synthesizer = synthesizer
        self.feedback = feedback
        self.wake_word = wake_word
        self.active_seconds = active_seconds
        self.command_timeout = command_timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.session = VoiceSession()
        self.phase = VoicePhase.IDLE
        self.transcript = ""
        self.numbers = OrderNumberMap()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._deadline: Optional[TimerHandle] = None
        self._listener: Optional[TimerHandle] = None
        self._resume: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def active(self) -> bool:
        return self.session.active

    def state(self) -> VoiceState:
        return VoiceState(
            session=self.session,
            phase=self.phase.value,
            transcript=self.transcript,
            order_numbers=self.numbers.as_dict(),
        )

    async def toggle(self) -> VoiceState:
        if self.active:
            await self.deactivate()
            await self.synthesizer.speak("Voice commands deactivated.")
            self._notify_info("Voice commands deactivated")
        else:
            await self.activate()
        return self.state()

    async def activate(self) -> None:
        if self.active:
            return
        self._generation += 1
        now = self.clock()
        self.session = VoiceSession(
            active=True,
            activated_at=now,
            deadline=now + timedelta(seconds=self.active_seconds),
        )
        self.numbers = OrderNumberMap.from_orders(self.store)
        self._unsubscribe = self.store.subscribe(self._renumber)
        self._deadline = self.scheduler.call_later(self.active_seconds, self._expire, name="voice-deadline")
        self._start_wake_word()
        logger.info("Voice mode activated", deadline=self.session.deadline.isoformat())

        await self.synthesizer.speak(
            f"Voice commands activated for one hour. Say '{self.wake_word}' to begin giving commands."
        )
        if self.feedback is not None:
            self.feedback.success("Voice commands activated for 1 hour")

    async def deactivate(self) -> None:
        """Tear the session down; safe to call from inside a voice task"""
        if not self.active and self.phase == VoicePhase.IDLE:
            return
        for handle in (self._deadline, self._listener, self._resume):
            self.scheduler.cancel(handle)
        self._deadline = self._listener = self._resume = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        await self.wake_recognizer.stop()
        await self.command_recognizer.stop()
        self.synthesizer.cancel()

        self.session = VoiceSession()
        self.phase = VoicePhase.IDLE
        self.transcript = ""
        self.numbers = OrderNumberMap()
        logger.info("Voice mode deactivated")

    def feed(self, result: RecognitionResultIn) -> bool:
        """Route a result from the display to the recognizer currently listening"""
        if self.phase == VoicePhase.WAKE_WORD:
            return self.wake_recognizer.push(result)
        if self.phase == VoicePhase.COMMAND:
            return self.command_recognizer.push(result)
        return False

    async def process_command(self, text: str) -> str:
        """Interpret and execute one spoken command; returns what was spoken"""
        command_text = strip_wake_word(text, self.wake_word)
        self.session = self.session.model_copy(update={"last_command_time": self.clock()})
        request = IntentRequest(
            text=command_text,
            order_number_map=self.numbers.as_dict(),
            allowed_actions=ALLOWED_ACTIONS,
        )
        try:
            command = await self.interpreter.interpret(request)
            reply = await self.dispatcher.dispatch(command, self.numbers)
        except InterpretationError as e:
            logger.warning("Voice command could not be processed", text=command_text, error=e.message)
            reply = COULD_NOT_PROCESS
        await self.synthesizer.speak(reply)
        return reply

    # Phases

    def _start_wake_word(self) -> None:
        if not self.active:
            return
        self._resume = None
        self.phase = VoicePhase.WAKE_WORD
        self.session = self.session.model_copy(update={"wake_word_detected": False})
        self._listener = self.scheduler.spawn(self._listen_for_wake_word(), name="wake-word")

    async def _listen_for_wake_word(self) -> None:
        finalized = ""
        keep = len(self.wake_word) * 2
        stream = self.wake_recognizer.listen(continuous=True, interim_results=True, max_alternatives=1)
        detected = False
        try:
            async for result in stream:
                text = result.alternatives[0].transcript
                # The phrase can straddle two results
                heard = f"{finalized} {text}".strip()
                if result.is_final:
                    finalized = heard[-keep:]
                self.transcript = heard
                if contains_wake_word(heard, self.wake_word):
                    detected = True
                    break
        except SpeechRecognitionError as e:
            await self._recognition_failed(e)
            return
        finally:
            await stream.aclose()

        if detected:
            await self.wake_recognizer.stop()
            await self._wake_word_detected()
        else:
            self._schedule_wake_word(WAKE_WORD_RESTART_SECONDS)

    async def _wake_word_detected(self) -> None:
        logger.info("Wake word detected", transcript=self.transcript)
        self.phase = VoicePhase.COMMAND
        self.session = self.session.model_copy(update={
            "wake_word_detected": True,
            "last_command_time": self.clock(),
        })
        self._listener = self.scheduler.spawn(self._listen_for_command(), name="voice-command")
        await self.synthesizer.speak(ACKNOWLEDGE)

    async def _listen_for_command(self) -> None:
        try:
            best = await asyncio.wait_for(self._best_alternative(), timeout=self.command_timeout)
        except asyncio.TimeoutError:
            logger.info("Voice command timed out", timeout=self.command_timeout)
            await self.command_recognizer.stop()
            best = None
        except SpeechRecognitionError as e:
            await self._recognition_failed(e)
            return

        if best is not None:
            self.transcript = best.transcript
            logger.info("Voice command heard", transcript=best.transcript, confidence=best.confidence)
            # Runs apart from the listener so deactivation never cancels a mutation mid-flight
            self.scheduler.spawn(self._run_command(best.transcript, self._generation), name="voice-command-run")
            return
        self._schedule_wake_word(RESUME_AFTER_END_SECONDS)

    async def _run_command(self, transcript: str, generation: int) -> None:
        await self.process_command(transcript)
        if generation == self._generation:
            self._schedule_wake_word(RESUME_AFTER_END_SECONDS)

    async def _best_alternative(self) -> Optional[RecognitionAlternativeIn]:
        best: Optional[RecognitionAlternativeIn] = None
        stream = self.command_recognizer.listen(
            continuous=False,
            interim_results=False,
            max_alternatives=COMMAND_ALTERNATIVES,
        )
        try:
            async for result in stream:
                for alternative in result.alternatives:
                    if not alternative.transcript.strip():
                        continue
                    if best is None or alternative.confidence > best.confidence:
                        best = alternative
        finally:
            await stream.aclose()
        return best

    async def _recognition_failed(self, error: SpeechRecognitionError) -> None:
        logger.warning("Speech recognition error", code=error.code, phase=self.phase.value)
        if error.permission_denied:
            await self.deactivate()
            if self.feedback is not None:
                self.feedback.error("Microphone access denied. Voice commands deactivated.")
            return
        self._schedule_wake_word(RESUME_AFTER_ERROR_SECONDS)

    def _schedule_wake_word(self, delay: float) -> None:
        if not self.active:
            return
        self.phase = VoicePhase.WAKE_WORD
        self._resume = self.scheduler.call_later(delay, self._start_wake_word, name="wake-word-resume")

    async def _expire(self) -> None:
        logger.info("Voice session expired")
        await self.deactivate()
        self._notify_info("Voice commands automatically deactivated after 1 hour")

    def _renumber(self) -> None:
        self.numbers = OrderNumberMap.from_orders(self.store)

    def _notify_info(self, message: str) -> None:
        if self.feedback is not None:
            self.feedback.info(message)
