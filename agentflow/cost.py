"""
Cost estimation for AI calls.

Prices are per 1,000 tokens, split into input and output rates. Lookups try an
exact model match first, then the longest known prefix so dated model ids such
as ``claude-3-haiku-20240307`` resolve to their family price.
"""
from decimal import Decimal
from typing import Dict, Optional, Tuple

PER_TOKENS = Decimal(1000)

# (input, output) per 1K tokens
AI_PRICING: Dict[str, Tuple[Decimal, Decimal]] = {
    # OpenAI
    "gpt-4o": (Decimal("0.0025"), Decimal("0.01")),
    "gpt-4o-mini": (Decimal("0.00015"), Decimal("0.0006")),
    "gpt-4-turbo": (Decimal("0.01"), Decimal("0.03")),
    "gpt-4": (Decimal("0.03"), Decimal("0.06")),
    "gpt-3.5-turbo": (Decimal("0.0015"), Decimal("0.002")),
    "o1": (Decimal("0.015"), Decimal("0.06")),
    "o1-mini": (Decimal("0.003"), Decimal("0.012")),
    "o3-mini": (Decimal("0.0011"), Decimal("0.0044")),

    # Google Gemini (free tier except Pro)
    "gemini-2.5-flash": (Decimal("0"), Decimal("0")),
    "gemini-2.0-flash": (Decimal("0"), Decimal("0")),
    "gemini-1.5-flash": (Decimal("0"), Decimal("0")),
    "gemini-pro": (Decimal("0"), Decimal("0")),
    "gemini-1.5-pro": (Decimal("0.00125"), Decimal("0.005")),

    # Anthropic
    "claude-3-opus": (Decimal("0.015"), Decimal("0.075")),
    "claude-3-5-sonnet": (Decimal("0.003"), Decimal("0.015")),
    "claude-3-sonnet": (Decimal("0.003"), Decimal("0.015")),
    "claude-3-haiku": (Decimal("0.00025"), Decimal("0.00125")),

    # Groq (free tier)
    "llama-3.1-70b-versatile": (Decimal("0"), Decimal("0")),
    "llama-3.1-8b-instant": (Decimal("0"), Decimal("0")),
    "llama-3.3-70b-versatile": (Decimal("0"), Decimal("0")),
    "mixtral-8x7b-32768": (Decimal("0"), Decimal("0")),

    # Ollama (local)
    "llama3:8b": (Decimal("0"), Decimal("0")),
    "mistral:7b": (Decimal("0"), Decimal("0")),
    "codellama:13b": (Decimal("0"), Decimal("0")),
    "phi3:mini": (Decimal("0"), Decimal("0")),
}

# Applied to unknown hosted models
DEFAULT_PRICING: Tuple[Decimal, Decimal] = (Decimal("0.001"), Decimal("0.002"))
FREE_PRICING: Tuple[Decimal, Decimal] = (Decimal("0"), Decimal("0"))

# Model families served by the local Ollama server
LOCAL_MODEL_FAMILIES = ("llama3", "llama2", "mistral", "codellama", "phi3", "gemma", "qwen", "deepseek-r1")

BASELINE_MODEL = "gpt-4-turbo"


def is_local_model(model: str) -> bool:
    """Ollama tags look like ``name:variant``; bare family names are local too."""
    name = (model or "").lower()
    if ":" in name:
        return True
    return any(name == family or name.startswith(f"{family}.") for family in LOCAL_MODEL_FAMILIES)


def get_pricing(model: str) -> Tuple[Decimal, Decimal]:
    name = (model or "").lower()
    if name in AI_PRICING:
        return AI_PRICING[name]

    best: Optional[str] = None
    for known in AI_PRICING:
        if name.startswith(known) and (best is None or len(known) > len(best)):
            best = known
    if best:
        return AI_PRICING[best]

    if is_local_model(name):
        return FREE_PRICING
    return DEFAULT_PRICING


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> Decimal:
    """Estimated cost of one call in USD."""
    if input_tokens < 0 or output_tokens < 0:
        raise ValueError("Token counts must be non-negative")
    input_rate, output_rate = get_pricing(model)
    return (Decimal(input_tokens) / PER_TOKENS) * input_rate + (Decimal(output_tokens) / PER_TOKENS) * output_rate


def calculate_saved_cost(model: str, input_tokens: int, output_tokens: int) -> Decimal:
    """What the call would have cost on the baseline model, minus what it did cost."""
    baseline = calculate_cost(BASELINE_MODEL, input_tokens, output_tokens)
    actual = calculate_cost(model, input_tokens, output_tokens)
    return max(Decimal(0), baseline - actual)


def estimate_tokens(text: str) -> int:
    """Rough approximation: 4 chars / token."""
    if not text:
        return 0
    return max(1, len(text) // 4)
