# src/llm_stack/backend.py
"""
Backend interface for local LLM engines.

The concrete implementation (llama_cpp, GGUF models) lives in
backend_llamacpp.py so that importing this module never pulls in the
native library.
"""

from __future__ import annotations

from typing import List, Optional, Protocol


class LLMBackend(Protocol):
    """Simple interface around a local text generation backend."""

    def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
        system_prompt: Optional[str] = None,
    ) -> str:
        """Generate a text completion for the given prompt. Blocking."""
        ...
