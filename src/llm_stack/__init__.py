# src/llm_stack/__init__.py
"""
Natural-language command translation.

- LlmCommandTranslator: two-prompt translation through an LLMBackend
- KeywordCommandTranslator: rule-based fallback when no model is configured

LlamaCppBackend lives in llm_stack.backend_llamacpp and is imported
lazily so the package works without llama-cpp-python installed.
"""

from __future__ import annotations

from .backend import LLMBackend
from .keyword import KeywordCommandTranslator
from .presets import ACTIONS, UNDERSTANDING, RolePreset
from .translator import LlmCommandTranslator, parse_command_lines

__all__ = [
    "ACTIONS",
    "KeywordCommandTranslator",
    "LLMBackend",
    "LlmCommandTranslator",
    "RolePreset",
    "UNDERSTANDING",
    "parse_command_lines",
]
