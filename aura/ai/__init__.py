"""
AI Module - LLM provider, prompts, intent classification and monitoring.
"""
