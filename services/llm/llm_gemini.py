# services/llm/llm_gemini.py

import asyncio
import logging
from typing import Optional

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import HumanMessage, SystemMessage

from config.settings import settings
from services.exceptions import AIServiceError
from services.llm.base import TextGenerator

logger = logging.getLogger(__name__)


class GeminiTextGenerator(TextGenerator):
    """LangChain Gemini chat model used for every report/analysis prompt."""

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        self.model_name = model or settings.GEMINI_MODEL
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self._model: Optional[ChatGoogleGenerativeAI] = None
        self._semaphore = asyncio.Semaphore(3)  # concurrent call limit

    def _get_model(self) -> ChatGoogleGenerativeAI:
        if not self.api_key:
            raise AIServiceError("GEMINI_API_KEY is not configured")
        if self._model is None:
            self._model = ChatGoogleGenerativeAI(
                model=self.model_name,
                google_api_key=self.api_key,
                temperature=settings.LLM_TEMPERATURE,
                max_output_tokens=settings.LLM_MAX_TOKENS,
            )
        return self._model

    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        model = self._get_model()
        messages = []
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=prompt))

        async with self._semaphore:
            try:
                resp = await asyncio.wait_for(model.ainvoke(messages), timeout=settings.LLM_TIMEOUT)
            except asyncio.TimeoutError as e:
                logger.error("Gemini request timed out after %ss", settings.LLM_TIMEOUT)
                raise AIServiceError("Gemini request timed out") from e
            except Exception as e:
                logger.error(f"Gemini request failed: {e}")
                raise AIServiceError(str(e)) from e

        content = getattr(resp, "content", "") or ""
        if isinstance(content, list):
            # multi-part responses come back as a list of parts
            content = "".join(p if isinstance(p, str) else p.get("text", "") for p in content)
        text = content.strip()
        if not text:
            raise AIServiceError("Gemini returned an empty response")
        logger.debug("Gemini response length=%d", len(text))
        return text


_generator: Optional[GeminiTextGenerator] = None


def get_text_generator() -> TextGenerator:
    """FastAPI dependency; overridden in tests."""
    global _generator
    if _generator is None:
        _generator = GeminiTextGenerator()
    return _generator
