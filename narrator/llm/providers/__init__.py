from narrator.llm.providers.base import Provider
from narrator.llm.providers.openai_compat import OpenAICompatProvider

__all__ = ["OpenAICompatProvider", "Provider"]
