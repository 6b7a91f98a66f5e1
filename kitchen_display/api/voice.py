"""Voice command API endpoints"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kitchen_display.api.deps import get_screen
from kitchen_display.kitchen.screen import KitchenScreen
from kitchen_display.schemas.voice import RecognitionResultIn, VoiceState
from kitchen_display.voice.engines import QueueSynthesizer

router = APIRouter()


class FeedResponse(BaseModel):
    accepted: bool
    phase: str


@router.post("/toggle", response_model=VoiceState, response_model_by_alias=True)
async def toggle_voice(screen: KitchenScreen = Depends(get_screen)):
    """Turn voice commands on for an hour, or off"""
    return await screen.voice.toggle()


@router.get("", response_model=VoiceState, response_model_by_alias=True)
async def get_voice_state(screen: KitchenScreen = Depends(get_screen)):
    return screen.voice.state()


@router.post("/results", response_model=FeedResponse)
async def push_result(result: RecognitionResultIn, screen: KitchenScreen = Depends(get_screen)):
    """Recognition result from the display's microphone"""
    accepted = screen.voice.feed(result)
    return FeedResponse(accepted=accepted, phase=screen.voice.phase.value)


@router.get("/utterances", response_model=List[str])
async def drain_utterances(screen: KitchenScreen = Depends(get_screen)):
    """Text for the display to speak, oldest first"""
    if isinstance(screen.synthesizer, QueueSynthesizer):
        return screen.synthesizer.drain()
    return []
