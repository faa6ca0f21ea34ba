"""Provider implementations."""

from instaflow.ai.providers.base import AIModel, GenerationConfig, ImageInput, ModelResponse, Provider
from instaflow.ai.providers.gemini import GeminiModel, GeminiProvider

__all__ = ["AIModel", "GenerationConfig", "ImageInput", "ModelResponse", "Provider", "GeminiModel", "GeminiProvider"]
