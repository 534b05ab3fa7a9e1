import logging

from agentflow.models import NotionNodeConfig
from agentflow.nodes.base import BaseNode, ExecutionContext, NodeResult

logger = logging.getLogger(__name__)

PAGE_CREATED = "Notion Page Created"


class NotionNode(BaseNode):
    """
    Notion node: files the carried value as a new page in the configured database.
    """

    def _title(self, config: NotionNodeConfig, value: str) -> str:
        if config.title:
            return config.title
        first_line = value.strip().splitlines()[0] if value.strip() else ""
        return first_line[:100] or "Workflow output"

    async def execute(self, value: str, context: ExecutionContext) -> NodeResult:
        config = self.config if isinstance(self.config, NotionNodeConfig) else NotionNodeConfig()
        if not config.database_id:
            return self.passthrough(value, "- Skipped Notion (No Database Selected)")

        logs = [f"- Creating Notion Page in DB: {config.database_id}"]
        try:
            await context.notion.create_entry(config.database_id, self._title(config, value), value)
        except Exception as e:
            logger.error(f"Notion node {self.node_id} error: {e}")
            logs.append(f"- Notion Error: {e}")
            return NodeResult(output=value, logs=logs)

        return NodeResult(output=PAGE_CREATED, logs=logs)
