"""Voice command pipeline"""

from kitchen_display.voice.engines import QueueRecognizer, QueueSynthesizer, SpeechRecognizer, SpeechSynthesizer
from kitchen_display.voice.interpreter import HttpIntentInterpreter, IntentInterpreter, LLMIntentInterpreter

__all__ = [
    "QueueRecognizer",
    "QueueSynthesizer",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "HttpIntentInterpreter",
    "IntentInterpreter",
    "LLMIntentInterpreter",
]
