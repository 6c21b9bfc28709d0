from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from openai import OpenAI

from ai_planner.config.schema import ModelConfig


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that turns a prompt into plan text."""

    def generate_text(self, prompt: str) -> str:
        ...


class LLMClient:
    """Chat-completions backed `TextGenerator` for drafting and revising plans."""

    def __init__(self, config: ModelConfig, api_key: Optional[str] = None, client: Optional[OpenAI] = None):
        self.config = config
        key = api_key or os.getenv("OPENAI_API_KEY")
        if not key and client is None:
            raise RuntimeError("OPENAI_API_KEY must be set or an OpenAI client provided.")
        base_url = config.base_url or os.getenv("OPENAI_BASE_URL")
        self.client = client or OpenAI(api_key=key, base_url=base_url)

    def generate(self, messages: List[Dict[str, Any]], **kwargs: Any) -> str:
        params = {
            "model": self.config.name,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_output_tokens,
        }
        params.update(kwargs)
        response = self.client.chat.completions.create(messages=messages, **params)
        return response.choices[0].message.content or ""

    def generate_text(self, prompt: str) -> str:
        return self.generate(
            [
                {"role": "system", "content": self.config.system_prompt},
                {"role": "user", "content": prompt},
            ]
        )
