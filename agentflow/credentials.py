import json
import os
import logging
from typing import Dict, List, Any, Optional

import aiofiles

logger = logging.getLogger(__name__)

# Extra env names checked when <PREFIX>_API_KEY is unset
CREDENTIAL_ALIASES: Dict[str, List[str]] = {
    "GOOGLE": ["GEMINI_API_KEY", "GOOGLE_AI_API_KEY"],
    "ANTHROPIC": ["CLAUDE_API_KEY"],
}


class CredentialStore:
    """
    Resolves provider API keys.

    Lookup order: the user's entry in the JSON keys file (``<PREFIX>_API_KEY``
    then ``<PREFIX>``), the ``<PREFIX>_API_KEY`` environment variable, then the
    provider's alias variables. The keys file is keyed by user id, and a user's
    entry may itself be a JSON-encoded string.
    """

    def __init__(self, keys_path: str = "api-keys.json", user_id: Optional[str] = None):
        self.keys_path = keys_path
        self.user_id = user_id

    async def _load_user_keys(self) -> Dict[str, Any]:
        if not self.user_id or not os.path.exists(self.keys_path):
            return {}
        try:
            async with aiofiles.open(self.keys_path, "r", encoding="utf-8") as f:
                all_keys = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read API keys file {self.keys_path}: {e}")
            return {}

        user_keys = all_keys.get(self.user_id) if isinstance(all_keys, dict) else None
        if isinstance(user_keys, str):
            try:
                user_keys = json.loads(user_keys)
            except json.JSONDecodeError:
                logger.warning(f"Malformed key entry for user {self.user_id}")
                return {}
        return user_keys if isinstance(user_keys, dict) else {}

    async def get(self, provider: str) -> Optional[str]:
        """Return the API key for a provider prefix such as ``OPENAI``, or None."""
        prefix = provider.upper()

        user_keys = await self._load_user_keys()
        key = user_keys.get(f"{prefix}_API_KEY") or user_keys.get(prefix)
        if key:
            return key

        key = os.getenv(f"{prefix}_API_KEY")
        if key:
            return key

        for alias in CREDENTIAL_ALIASES.get(prefix, []):
            key = os.getenv(alias)
            if key:
                logger.debug(f"Resolved {prefix} key via {alias}")
                return key

        return None
