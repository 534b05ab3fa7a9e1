import logging
from typing import Dict, Type

from agentflow.models import NodeType, WorkflowNode
from agentflow.nodes.base import BaseNode
from agentflow.nodes.trigger_nodes import PassthroughNode

logger = logging.getLogger(__name__)


class NodeRegistry:
    """
    Maps node types to executor classes. Types without an executor of their
    own (Condition, Wait, Email, unknown editor types) run as passthroughs.
    """
    _registry: Dict[str, Type[BaseNode]] = {}

    @classmethod
    def register(cls, node_type: str, executor_class: Type[BaseNode]):
        cls._registry[node_type] = executor_class
        logger.debug(f"Registered node type: {node_type} -> {executor_class.__name__}")

    @classmethod
    def get_executor(cls, node_type: str) -> Type[BaseNode]:
        """Executor class for node_type, PassthroughNode when none is registered."""
        return cls._registry.get(node_type, PassthroughNode)

    @classmethod
    def create(cls, node: WorkflowNode) -> BaseNode:
        return cls.get_executor(node.type)(node)


def initialize_default_registry():
    """Register the built-in executors."""
    from agentflow.nodes.agent_node import AgentNode
    from agentflow.nodes.notion_node import NotionNode
    from agentflow.nodes.slack_node import SlackNode
    from agentflow.nodes.trigger_nodes import TriggerNode

    for node_type, executor_class in (
        (NodeType.TRIGGER, TriggerNode),
        (NodeType.AI, AgentNode),
        (NodeType.SLACK, SlackNode),
        (NodeType.NOTION, NotionNode),
    ):
        NodeRegistry.register(node_type.value, executor_class)
