"""
Google AI Studio Provider - Free tier Gemini access.
"""
import logging
from typing import Optional, Dict, Any
from llm_providers import LLMProvider, ProviderType, AIRequest, HTTPRequest, Completion

logger = logging.getLogger(__name__)


class GoogleAIProvider(LLMProvider):
    """
    Google AI Studio provider for Gemini models.

    Free tier: 60 requests/minute
    Models: gemini-1.5-flash, gemini-1.5-pro, etc.
    """

    provider_type = ProviderType.GOOGLE_AI
    display_name = "Gemini"
    credential_name = "GOOGLE"
    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-1.5-flash"

    AVAILABLE_MODELS = [
        "gemini-1.5-flash",
        "gemini-1.5-flash-8b",
        "gemini-1.5-pro",
        "gemini-2.0-flash",
        "gemini-2.5-flash",
        "gemini-2.5-pro",
        "gemini-pro",
    ]

    def build_request(self, request: AIRequest, api_key: Optional[str]) -> HTTPRequest:
        # Gemini has no system role on this endpoint; fold it into the single user part
        system = f"System: {request.system_prompt}\n" if request.system_prompt else ""
        return HTTPRequest(
            url=f"{self.BASE_URL}/models/{request.model}:generateContent",
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": api_key or "",
            },
            payload={
                "contents": [{
                    "parts": [{"text": f"{system}User: {request.prompt}"}]
                }],
                "generationConfig": {
                    "temperature": request.temperature,
                    "maxOutputTokens": request.max_tokens,
                },
            },
        )

    def parse_response(self, data: Dict[str, Any]) -> Completion:
        text = "No response text found"
        candidates = data.get("candidates") or []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            if parts and parts[0].get("text"):
                text = parts[0]["text"]
        else:
            logger.warning(f"Gemini returned no candidates: {str(data)[:200]}")

        usage = data.get("usageMetadata") or {}
        return Completion(
            text=text,
            input_tokens=usage.get("promptTokenCount") or 0,
            output_tokens=usage.get("candidatesTokenCount") or 0,
        )
