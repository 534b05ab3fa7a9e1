import logging
from typing import List

from agentflow.models import ChannelOption, SlackNodeConfig
from agentflow.nodes.base import BaseNode, ExecutionContext, NodeResult

logger = logging.getLogger(__name__)


class SlackNode(BaseNode):
    """
    Slack node. As the first step of a run it acts as the trigger and echoes
    the input as the received message; anywhere else it posts the carried value.
    """

    def _channels(self, context: ExecutionContext) -> List[ChannelOption]:
        # Channels picked in the run dialog win over the node's own setting
        if context.options.selected_channels:
            return list(context.options.selected_channels)
        config = self.config if isinstance(self.config, SlackNodeConfig) else SlackNodeConfig()
        if config.channel_id:
            return [ChannelOption(label="Channel", value=config.channel_id)]
        return []

    async def execute(self, value: str, context: ExecutionContext) -> NodeResult:
        if context.step == 1:
            return NodeResult(output=value, logs=[f'- Simulating Slack Message: "{value}"'])

        channels = self._channels(context)
        if not channels:
            return self.passthrough(value, "- Skipped Slack: Missing channel selection (select a channel in the Settings tab)")
        if not value:
            return self.passthrough(value, "- Skipped Slack: Missing message content")

        logs = [
            f"- Sending Slack message to {len(channels)} channel(s): {', '.join(c.value for c in channels)}",
            f'- Message content: "{value[:100]}..."',
        ]
        try:
            result = await context.slack.post_message(channels, value)
        except Exception as e:
            logger.error(f"Slack node {self.node_id} error: {e}")
            logs.append(f"- Slack Error: {e}")
            return NodeResult(output=value, logs=logs)

        logs.append(f"- Slack API Result: {result.get('message')}")
        return NodeResult(output=value, logs=logs)
