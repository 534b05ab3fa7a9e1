import logging

from agentflow.nodes.base import BaseNode, ExecutionContext, NodeResult

logger = logging.getLogger(__name__)


class TriggerNode(BaseNode):
    """Entry point of a flow: forwards the run input unchanged."""

    async def execute(self, value: str, context: ExecutionContext) -> NodeResult:
        return NodeResult(output=value, logs=[f"- Trigger fired with {len(value)} chars of input"])


class PassthroughNode(BaseNode):
    """
    Executor for every node type without a dedicated implementation
    (Condition, Wait, Email, Action, Google Drive, unknown types).
    """

    async def execute(self, value: str, context: ExecutionContext) -> NodeResult:
        logger.debug(f"Passthrough for node {self.node_id} ({self.node.type})")
        return self.passthrough(value, f"- Passthrough node type: {self.node.type}")
