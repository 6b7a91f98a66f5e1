"""LLM adapter schemas"""

from typing import Optional, List, Any, Dict
from pydantic import BaseModel


class LLMMessage(BaseModel):
    """Message in conversation"""
    role: str  # user, assistant
    content: str


class ToolDefinition(BaseModel):
    """Tool (function) the model is asked to call"""
    name: str
    description: str
    parameters: Dict[str, Any]


class ToolCall(BaseModel):
    """Tool call from LLM"""
    name: str
    arguments: Dict[str, Any]


class UsageStats(BaseModel):
    """Token usage statistics"""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class LLMGenerateResponse(BaseModel):
    """LLM generation response"""
    type: str  # text, tool_call
    content: Optional[str] = None
    tool_call: Optional[ToolCall] = None
    usage: Optional[UsageStats] = None
    provider: str
    model: str
