"""
LLM Provider base class and registry for the AI node.

Every provider turns an AIRequest into one HTTP call and the reply into a
ProviderResponse. Failures never raise out of invoke_provider: they come back
as ProviderResponse(success=False, data=<message>).
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Any, Optional, Type

import aiohttp
from pydantic import BaseModel, Field

from agentflow.config import EngineSettings
from agentflow.cost import calculate_cost
from agentflow.models import DEFAULT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class ProviderType(str, Enum):
    """Available LLM provider types."""
    OPENAI = "openai"
    GOOGLE_AI = "google_ai"
    ANTHROPIC = "anthropic"
    GROQ = "groq"
    OLLAMA = "ollama"


class AIRequest(BaseModel):
    """One AI call, built fresh for every AI node invocation."""
    provider: str
    model: str = ""
    prompt: str
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, alias="systemPrompt")
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=1000, alias="maxTokens", ge=1)

    model_config = {"populate_by_name": True}


class ProviderResponse(BaseModel):
    """Normalized provider reply; data is the response text or the error message."""
    success: bool
    data: str
    cost: float = 0.0
    status: str = "completed"
    model: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0

    @classmethod
    def failure(cls, message: str, model: Optional[str] = None) -> "ProviderResponse":
        return cls(success=False, data=message, status="failed", model=model)


class ProviderError(Exception):
    """Raised inside a provider when a reply cannot be used."""
    pass


@dataclass
class HTTPRequest:
    url: str
    payload: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=lambda: {"Content-Type": "application/json"})


@dataclass
class Completion:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Subclasses describe their wire format through build_request and
    parse_response; generate performs the single POST in between.
    """

    provider_type: ProviderType
    display_name: str = "Provider"
    # Prefix used for credential lookup (OPENAI -> OPENAI_API_KEY); None for keyless providers
    credential_name: Optional[str] = None
    DEFAULT_MODEL: str = ""
    AVAILABLE_MODELS: List[str] = []

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.timeout = config.get("timeout", 120)

    @classmethod
    def from_settings(cls, settings) -> "LLMProvider":
        return cls({"timeout": settings.request_timeout})

    @classmethod
    def is_valid_model(cls, model: Optional[str]) -> bool:
        if not model:
            return False
        return any(model in known or known in model for known in cls.AVAILABLE_MODELS)

    @classmethod
    def resolve_model(cls, model: Optional[str]) -> str:
        """The configured model when this provider knows it, otherwise the provider default."""
        return model if cls.is_valid_model(model) else cls.DEFAULT_MODEL

    @abstractmethod
    def build_request(self, request: AIRequest, api_key: Optional[str]) -> HTTPRequest:
        """Build the provider-specific HTTP request."""
        pass

    @abstractmethod
    def parse_response(self, data: Dict[str, Any]) -> Completion:
        """Extract text and token usage from a successful reply."""
        pass

    def estimate_cost(self, model: str, completion: Completion) -> Decimal:
        return calculate_cost(model, completion.input_tokens, completion.output_tokens)

    def error_message(self, data: Any, status: int) -> str:
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            error = error.get("message")
        return error or f"{self.display_name} API Error ({status})"

    async def generate(self, request: AIRequest, api_key: Optional[str] = None) -> ProviderResponse:
        """Run one request against the provider. Exactly one attempt, no retries."""
        model = request.model or self.DEFAULT_MODEL
        request = request.model_copy(update={"model": model})
        http_request = self.build_request(request, api_key)

        logger.info(f"{self.display_name} request (model: {model}, prompt: {len(request.prompt)} chars)")
        status, data = await self._post(http_request)

        if not 200 <= status < 300:
            message = self.error_message(data, status)
            logger.error(f"{self.display_name} API error {status}: {message}")
            return ProviderResponse.failure(message, model=model)

        try:
            completion = self.parse_response(data)
            cost = self.estimate_cost(model, completion)
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError(f"Unexpected {self.display_name} response shape: {e}") from e

        return ProviderResponse(
            success=True,
            data=completion.text,
            cost=float(cost),
            status="completed",
            model=model,
            input_tokens=completion.input_tokens,
            output_tokens=completion.output_tokens,
        )

    async def _post(self, http_request: HTTPRequest):
        """POST JSON and return (status, decoded body)."""
        timeout = aiohttp.ClientTimeout(total=self.timeout or None)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(http_request.url, json=http_request.payload, headers=http_request.headers) as response:
                text = await response.text()
                try:
                    data = json.loads(text) if text else {}
                except json.JSONDecodeError:
                    data = {"error": text[:200]}
                return response.status, data


def normalize_provider_name(name: str) -> str:
    return (name or "").strip().lower().replace(" ", "_").replace("-", "_")


class ProviderRegistry:
    """
    Registry for LLM providers.
    Maps provider ids and their display-name aliases to provider classes.
    """

    _providers: Dict[str, Type[LLMProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_class: Type[LLMProvider]):
        """Register a provider class under a name or alias."""
        cls._providers[normalize_provider_name(name)] = provider_class
        logger.debug(f"Registered LLM provider: {name}")

    @classmethod
    def get(cls, name: str) -> Optional[Type[LLMProvider]]:
        return cls._providers.get(normalize_provider_name(name))

    @classmethod
    def get_available(cls) -> List[str]:
        """List the distinct registered provider ids."""
        return sorted({p.provider_type.value for p in cls._providers.values()})

    @classmethod
    def default_model_for(cls, name: str, fallback: str = "llama-3.1-70b-versatile") -> str:
        provider_class = cls.get(name)
        return provider_class.DEFAULT_MODEL if provider_class else fallback


async def invoke_provider(request: AIRequest, credentials=None, settings=None) -> ProviderResponse:
    """
    Dispatch request to its provider and normalize every outcome.

    Missing credentials fail before any network call; HTTP errors, timeouts
    and malformed replies all come back as failed ProviderResponses.
    """
    provider_class = ProviderRegistry.get(request.provider)
    if provider_class is None:
        return ProviderResponse.failure(f"Provider {request.provider} is not supported")

    settings = settings or EngineSettings()
    provider = provider_class.from_settings(settings)

    api_key = None
    if provider.credential_name:
        if credentials is not None:
            api_key = await credentials.get(provider.credential_name)
        if not api_key:
            return ProviderResponse.failure(f"{provider.display_name} Key not found (Add in Settings)")

    try:
        return await provider.generate(request, api_key)
    except asyncio.TimeoutError:
        logger.error(f"{provider.display_name} request timed out")
        return ProviderResponse.failure("Request timed out", model=request.model)
    except aiohttp.ClientError as e:
        logger.error(f"{provider.display_name} connection error: {e}")
        return ProviderResponse.failure(f"{provider.display_name} request failed: {e}", model=request.model)
    except ProviderError as e:
        logger.error(str(e))
        return ProviderResponse.failure(str(e), model=request.model)


# Import and register providers when this module loads
def _register_providers():
    """Register all available providers."""
    from llm_providers.openai import OpenAIProvider
    from llm_providers.google_ai import GoogleAIProvider
    from llm_providers.anthropic import AnthropicProvider
    from llm_providers.groq import GroqProvider
    from llm_providers.ollama import OllamaProvider

    ProviderRegistry.register("openai", OpenAIProvider)
    ProviderRegistry.register("google_ai", GoogleAIProvider)
    ProviderRegistry.register("Google Gemini", GoogleAIProvider)
    ProviderRegistry.register("gemini", GoogleAIProvider)
    ProviderRegistry.register("anthropic", AnthropicProvider)
    ProviderRegistry.register("claude", AnthropicProvider)  # Alias
    ProviderRegistry.register("groq", GroqProvider)
    ProviderRegistry.register("ollama", OllamaProvider)


# Register on load
_register_providers()
