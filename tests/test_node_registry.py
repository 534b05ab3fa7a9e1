"""Tests for executor lookup by node type."""

import pytest

from agentflow.models import WorkflowNode
from agentflow.nodes.agent_node import AgentNode
from agentflow.nodes.notion_node import NotionNode
from agentflow.nodes.registry import NodeRegistry, initialize_default_registry
from agentflow.nodes.slack_node import SlackNode
from agentflow.nodes.trigger_nodes import PassthroughNode, TriggerNode

from conftest import make_node


@pytest.fixture(autouse=True)
def default_registry():
    initialize_default_registry()


class TestNodeRegistry:

    @pytest.mark.parametrize(
        "node_type, executor_class",
        [
            ("Trigger", TriggerNode),
            ("AI", AgentNode),
            ("Slack", SlackNode),
            ("Notion", NotionNode),
        ],
    )
    def test_built_in_executors(self, node_type, executor_class):
        assert NodeRegistry.get_executor(node_type) is executor_class

    @pytest.mark.parametrize("node_type", ["Condition", "Wait", "Email", "Webhook"])
    def test_unregistered_types_pass_through(self, node_type):
        assert NodeRegistry.get_executor(node_type) is PassthroughNode

    def test_create_binds_node(self):
        node = WorkflowNode.model_validate(make_node("s1", "Slack", channel="C1"))

        executor = NodeRegistry.create(node)

        assert isinstance(executor, SlackNode)
        assert executor.node is node
