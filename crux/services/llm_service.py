"""Chat-model completion backends behind a single `complete(prompt)` call.

The provider package is imported on first use, so only the configured
backend needs to be installed.
"""

import asyncio
from typing import Any, Protocol
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from ..models import LLMConfig

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Text-completion capability consumed by the pipeline."""

    async def complete(self, prompt: str) -> str:
        """Return the free-form completion for a single prompt."""
        ...


class LLMService:
    """CompletionClient backed by a langchain chat model.

    Providers: openai (default), ollama, groq, gemini.

    Usage:
        service = LLMService(config)
        text = await service.complete(prompt)
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._llm: BaseChatModel | None = None

    def _get_llm(self) -> BaseChatModel:
        """Build the configured chat model once."""
        if self._llm is not None:
            return self._llm

        if self.config.provider == "openai":
            from langchain_openai import ChatOpenAI
            self._llm = ChatOpenAI(
                model=self.config.model,
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                temperature=self.config.temperature,
            )
        elif self.config.provider == "ollama":
            from langchain_ollama import ChatOllama
            self._llm = ChatOllama(
                model=self.config.model,
                base_url=self.config.base_url or "http://localhost:11434",
                temperature=self.config.temperature,
            )
        elif self.config.provider == "groq":
            from langchain_groq import ChatGroq
            self._llm = ChatGroq(
                model=self.config.model,
                api_key=self.config.api_key,
                temperature=self.config.temperature,
            )
        elif self.config.provider == "gemini":
            from langchain_google_genai import ChatGoogleGenerativeAI
            self._llm = ChatGoogleGenerativeAI(
                model=self.config.model,
                google_api_key=self.config.api_key,
                temperature=self.config.temperature,
            )
        else:
            raise ValueError(f"Unknown LLM provider: {self.config.provider}")

        return self._llm

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the text of the reply.

        Raises:
            asyncio.TimeoutError: If the call exceeds ``timeout_seconds``.
        """
        llm = self._get_llm()
        response = await asyncio.wait_for(
            llm.ainvoke([HumanMessage(content=prompt)]),
            timeout=self.config.timeout_seconds,
        )
        text = message_text(response.content)
        logger.debug(f"Completion returned {len(text)} chars from {self.config.model}")
        return text


def message_text(content: Any) -> str:
    """Flatten chat message content (plain string or list of parts)."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)
