"""
AI Prompts - Instruction templates sent to the LLM.
"""

from aura.ai.prompts.intent_prompts import INTENT_SYSTEM_PROMPT, build_system_prompt

__all__ = ["INTENT_SYSTEM_PROMPT", "build_system_prompt"]
