import os
import logging
import aiohttp
from typing import Dict, List, Optional

from agentflow.exceptions import IntegrationError
from agentflow.models import ChannelOption

logger = logging.getLogger(__name__)


class SlackClient:
    """
    Posts messages through the Slack Web API (chat.postMessage).
    """
    BASE_URL = "https://slack.com/api"

    def __init__(self, token: Optional[str] = None, timeout: int = 30):
        self.token = token or os.getenv("SLACK_BOT_TOKEN")
        self.timeout = timeout

    async def post_message(self, channels: List[ChannelOption], content: str) -> Dict[str, str]:
        """
        Send content to every channel.

        Configuration gaps come back as a message; a failed API call raises
        IntegrationError.
        """
        if not self.token:
            return {"message": "No Slack token configured"}
        if not content:
            return {"message": "Content is empty"}
        if not channels:
            return {"message": "Channel not selected"}

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json;charset=utf-8",
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            for channel in channels:
                payload = {"channel": channel.value, "text": content}
                try:
                    async with session.post(f"{self.BASE_URL}/chat.postMessage", json=payload, headers=headers) as resp:
                        result = await resp.json(content_type=None)
                except aiohttp.ClientError as e:
                    raise IntegrationError("Slack", str(e)) from e

                # Slack reports most failures as 200 with ok=false
                if resp.status != 200 or not result.get("ok"):
                    raise IntegrationError("Slack", result.get("error", "Message could not be sent to Slack"), resp.status)
                logger.info(f"Posted Slack message to {channel.value}")

        return {"message": "Success"}
