from .llm_client import LLMClient, TextGenerator

__all__ = ["LLMClient", "TextGenerator"]
