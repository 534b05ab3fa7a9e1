"""
Ollama LLM Provider - Local LLM inference via Ollama.
"""
import logging
from decimal import Decimal
from typing import Optional, Dict, Any
from llm_providers import LLMProvider, ProviderType, AIRequest, HTTPRequest, Completion

logger = logging.getLogger(__name__)


class OllamaProvider(LLMProvider):
    """
    Ollama provider for local LLM inference.

    Requires Ollama to be installed and running locally.
    Default endpoint: http://127.0.0.1:11434
    """

    provider_type = ProviderType.OLLAMA
    display_name = "Ollama"
    DEFAULT_MODEL = "llama3.2"

    AVAILABLE_MODELS = [
        "llama3.2",
        "llama3.1",
        "mistral",
        "codellama",
        "phi3",
    ]

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.base_url = config.get("base_url", "http://127.0.0.1:11434").rstrip("/")

    @classmethod
    def from_settings(cls, settings) -> "OllamaProvider":
        return cls({"timeout": settings.request_timeout, "base_url": settings.ollama_base_url})

    def build_request(self, request: AIRequest, api_key: Optional[str]) -> HTTPRequest:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        return HTTPRequest(
            url=f"{self.base_url}/api/chat",
            payload={
                "model": request.model,
                "messages": messages,
                "stream": False,
                "options": {
                    "temperature": request.temperature,
                    "num_predict": request.max_tokens,
                },
            },
        )

    def parse_response(self, data: Dict[str, Any]) -> Completion:
        return Completion(
            text=data["message"]["content"] or "",
            input_tokens=data.get("prompt_eval_count") or 0,
            output_tokens=data.get("eval_count") or 0,
        )

    def estimate_cost(self, model: str, completion: Completion) -> Decimal:
        # Local is free
        return Decimal(0)

    def error_message(self, data: Any, status: int) -> str:
        if isinstance(data, dict) and isinstance(data.get("error"), str):
            return f"Ollama API Error: {data['error']}"
        return "Ollama API Error or Model not found"
