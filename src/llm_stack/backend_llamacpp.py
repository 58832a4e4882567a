# src/llm_stack/backend_llamacpp.py

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from llama_cpp import Llama

from env.schema import LlmConfig

from .backend import LLMBackend


class LlamaCppBackend(LLMBackend):
    """LLMBackend implementation using llama.cpp local inference.

        backend = LlamaCppBackend(config.llm)

    `config.model_path` must point at a GGUF file. gpu_layers=None offloads
    as many layers as VRAM allows.
    """

    def __init__(self, config: LlmConfig) -> None:
        if not config.model_path:
            raise ValueError("LlamaCppBackend requires llm.model_path")
        path = Path(config.model_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(path)

        gpu_layers = 9999 if config.gpu_layers is None else config.gpu_layers
        # Sensible default: use all but 1 CPU core
        n_threads = max(1, (os.cpu_count() or 1) - 1)

        self._llm = Llama(
            model_path=str(path),
            n_ctx=config.context_length,
            n_gpu_layers=gpu_layers,
            n_threads=n_threads,
            verbose=False,
        )

    def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
        system_prompt: Optional[str] = None,
    ) -> str:
        """
        Chat-completion call: system_prompt -> system message, prompt ->
        user message; returns the assistant text.
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        out = self._llm.create_chat_completion(
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            stop=stop or [],
        )

        # OpenAI-style shape: choices[0]["message"]["content"]
        text = out["choices"][0]["message"]["content"] or ""
        return text.strip()
