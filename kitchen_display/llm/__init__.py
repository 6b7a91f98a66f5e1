"""LLM adapter module"""

from kitchen_display.llm.adapter import LLMAdapter, get_llm_adapter

__all__ = ["LLMAdapter", "get_llm_adapter"]
