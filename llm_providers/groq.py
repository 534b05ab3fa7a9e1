"""
Groq LLM Provider - Fast inference with generous free tier.
"""
from decimal import Decimal
from llm_providers import ProviderType, Completion
from llm_providers.openai import OpenAIProvider


class GroqProvider(OpenAIProvider):
    """
    Groq provider for fast LLM inference.

    Speaks the OpenAI chat completions format on its own base URL.
    Free tier: 30 requests/minute, so calls are never charged.
    """

    provider_type = ProviderType.GROQ
    display_name = "Groq"
    credential_name = "GROQ"
    BASE_URL = "https://api.groq.com/openai/v1"
    DEFAULT_MODEL = "llama-3.1-70b-versatile"

    AVAILABLE_MODELS = [
        "llama-3.1-70b-versatile",
        "llama-3.1-8b-instant",
        "llama-3.3-70b-versatile",
        "mixtral-8x7b-32768",
        "gemma2-9b-it",
    ]

    def estimate_cost(self, model: str, completion: Completion) -> Decimal:
        return Decimal(0)
