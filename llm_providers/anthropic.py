"""
Anthropic Provider - Claude models through the Messages API.
"""
from typing import Optional, Dict, Any
from llm_providers import LLMProvider, ProviderType, AIRequest, HTTPRequest, Completion


class AnthropicProvider(LLMProvider):
    """
    Anthropic provider. Authenticates with the x-api-key header rather than a
    bearer token and takes the system prompt as a top-level field.
    """

    provider_type = ProviderType.ANTHROPIC
    display_name = "Anthropic"
    credential_name = "ANTHROPIC"
    BASE_URL = "https://api.anthropic.com/v1"
    API_VERSION = "2023-06-01"
    DEFAULT_MODEL = "claude-3-haiku-20240307"

    AVAILABLE_MODELS = [
        "claude-3-5-sonnet-20241022",
        "claude-3-haiku-20240307",
        "claude-3-opus-20240229",
    ]

    def build_request(self, request: AIRequest, api_key: Optional[str]) -> HTTPRequest:
        payload: Dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt

        return HTTPRequest(
            url=f"{self.BASE_URL}/messages",
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key or "",
                "anthropic-version": self.API_VERSION,
            },
            payload=payload,
        )

    def parse_response(self, data: Dict[str, Any]) -> Completion:
        content = data.get("content") or []
        text = next((block.get("text") for block in content if block.get("type", "text") == "text"), None)
        usage = data.get("usage") or {}
        return Completion(
            text=text or "No response text found",
            input_tokens=usage.get("input_tokens") or 0,
            output_tokens=usage.get("output_tokens") or 0,
        )
