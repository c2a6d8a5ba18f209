from abc import ABC, abstractmethod
from typing import Optional


class TextGenerator(ABC):
    """Prompt in, generated text out. Implementations raise AIServiceError on failure."""

    @abstractmethod
    async def complete(self, prompt: str, system: Optional[str] = None) -> str: ...
