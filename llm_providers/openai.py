"""
OpenAI Provider - Chat Completions API.
"""
import logging
from typing import Optional, Dict, Any
from llm_providers import LLMProvider, ProviderType, AIRequest, HTTPRequest, Completion

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """
    OpenAI provider using the chat completions endpoint.

    Metered: cost is derived from the usage block of each reply.
    """

    provider_type = ProviderType.OPENAI
    display_name = "OpenAI"
    credential_name = "OPENAI"
    BASE_URL = "https://api.openai.com/v1"
    DEFAULT_MODEL = "gpt-4o-mini"

    AVAILABLE_MODELS = [
        "gpt-4o",
        "gpt-4o-mini",
        "gpt-4-turbo",
        "gpt-3.5-turbo",
        "o1",
        "o1-mini",
        "o3-mini",
    ]

    def build_request(self, request: AIRequest, api_key: Optional[str]) -> HTTPRequest:
        return HTTPRequest(
            url=f"{self.BASE_URL}/chat/completions",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            payload={
                "model": request.model,
                "messages": [
                    {"role": "system", "content": request.system_prompt},
                    {"role": "user", "content": request.prompt},
                ],
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            },
        )

    def parse_response(self, data: Dict[str, Any]) -> Completion:
        usage = data.get("usage") or {}
        return Completion(
            text=data["choices"][0]["message"]["content"] or "",
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
        )
