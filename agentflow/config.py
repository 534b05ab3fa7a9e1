import os
import logging
from typing import Optional
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 20


class EngineSettings(BaseModel):
    """Runtime settings for the execution engine."""
    max_steps: int = Field(default=DEFAULT_MAX_STEPS, ge=1, description="Hard ceiling on traversal steps per run")
    default_provider: str = Field(default="Groq", description="Provider used when an AI node names none")
    api_keys_path: str = Field(default="api-keys.json", description="JSON file holding per-user provider keys")
    ollama_base_url: str = Field(default="http://127.0.0.1:11434")
    request_timeout: float = Field(default=120, ge=0, description="Seconds per provider request, 0 disables")
    user_id: Optional[str] = Field(default=None, description="Owner of the keys looked up in api_keys_path")

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from environment variables, falling back to defaults."""
        values = {}
        env_map = {
            "AGENTFLOW_MAX_STEPS": "max_steps",
            "AGENTFLOW_DEFAULT_PROVIDER": "default_provider",
            "AGENTFLOW_API_KEYS_PATH": "api_keys_path",
            "OLLAMA_BASE_URL": "ollama_base_url",
            "AGENTFLOW_REQUEST_TIMEOUT": "request_timeout",
            "AGENTFLOW_USER_ID": "user_id",
        }
        for env_name, field_name in env_map.items():
            raw = os.getenv(env_name)
            if raw:
                values[field_name] = raw
        settings = cls(**values)
        logger.debug(f"Engine settings loaded: {settings.model_dump()}")
        return settings
