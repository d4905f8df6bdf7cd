from .base import BaseUpstreamAdapter
from .gemini import GeminiAdapter

__all__ = ["BaseUpstreamAdapter", "GeminiAdapter"]
