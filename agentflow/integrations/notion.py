import os
import json
import logging
import aiohttp
from typing import Dict, Any, Optional

from agentflow.exceptions import IntegrationError

logger = logging.getLogger(__name__)


class NotionClient:
    """
    Managed Connector for Notion API.
    """
    BASE_URL = "https://api.notion.com/v1"
    NOTION_VERSION = "2022-06-28"

    def __init__(self, token: Optional[str] = None, timeout: int = 30):
        self.token = token or os.getenv("NOTION_API_SECRET")
        self.timeout = timeout

    async def _request(self, session: aiohttp.ClientSession, method: str, url: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Notion-Version": self.NOTION_VERSION,
            "Content-Type": "application/json",
        }
        try:
            async with session.request(method=method, url=url, headers=headers, json=data) as response:
                text = await response.text()
                try:
                    resp_data = json.loads(text) if text else {}
                except json.JSONDecodeError:
                    resp_data = {"message": text[:200]}
                if not response.ok:
                    raise IntegrationError("Notion", resp_data.get("message", "Request failed"), response.status)
                return resp_data
        except aiohttp.ClientError as e:
            raise IntegrationError("Notion", str(e)) from e

    async def create_entry(self, database_id: str, title: str, content: str) -> Dict[str, Any]:
        """
        Create a page in database_id.

        The database is fetched first to find its title property; title fills
        that property and content goes into a paragraph block.
        """
        if not self.token:
            raise IntegrationError("Notion", "No Notion access token")

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            # GET https://api.notion.com/v1/databases/{database_id}
            database = await self._request(session, "GET", f"{self.BASE_URL}/databases/{database_id}")
            title_property = next(
                (name for name, prop in (database.get("properties") or {}).items() if prop.get("type") == "title"),
                None,
            )
            if not title_property:
                raise IntegrationError("Notion", "Database has no title property")

            body = {
                "parent": {"type": "database_id", "database_id": database_id},
                "properties": {
                    title_property: {"title": [{"text": {"content": title[:2000]}}]},
                },
            }
            if content and content != title:
                body["children"] = [{
                    "object": "block",
                    "type": "paragraph",
                    "paragraph": {"rich_text": [{"type": "text", "text": {"content": content[:2000]}}]},
                }]

            # POST https://api.notion.com/v1/pages
            page = await self._request(session, "POST", f"{self.BASE_URL}/pages", body)
            logger.info(f"Created Notion page {page.get('id')} in database {database_id}")
            return page
