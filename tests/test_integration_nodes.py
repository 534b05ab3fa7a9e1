"""Tests for the Slack and Notion nodes and their API clients."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agentflow.config import EngineSettings
from agentflow.exceptions import IntegrationError
from agentflow.integrations import NotionClient, SlackClient
from agentflow.models import ChannelOption, RunOptions, WorkflowNode
from agentflow.nodes.base import ExecutionContext
from agentflow.nodes.notion_node import PAGE_CREATED, NotionNode
from agentflow.nodes.slack_node import SlackNode

from conftest import make_node


def make_context(step=2, slack=None, notion=None, channels=None) -> ExecutionContext:
    return ExecutionContext(
        step=step,
        options=RunOptions(selected_channels=channels or []),
        settings=EngineSettings(),
        invoke_ai=AsyncMock(),
        slack=slack,
        notion=notion,
    )


def build(executor_class, node_type, **metadata):
    return executor_class(WorkflowNode.model_validate(make_node("n1", node_type, **metadata)))


# ---------------------------------------------------------------------------
# Slack node
# ---------------------------------------------------------------------------


class TestSlackNode:

    @pytest.mark.asyncio
    async def test_posts_to_configured_channel(self, slack):
        node = build(SlackNode, "Slack", channel="general")

        result = await node.execute("hello team", make_context(slack=slack))

        assert result.output == "hello team"
        assert "- Slack API Result: Success" in result.logs
        channels, content = slack.post_message.await_args.args
        assert [c.value for c in channels] == ["general"]
        assert content == "hello team"

    @pytest.mark.asyncio
    async def test_missing_content(self, slack):
        node = build(SlackNode, "Slack", channel="general")

        result = await node.execute("", make_context(slack=slack))

        assert result.logs == ["- Skipped Slack: Missing message content"]
        slack.post_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_channel_from_run_options(self, slack):
        node = build(SlackNode, "Slack")
        channels = [ChannelOption(value="C1"), ChannelOption(value="C2")]

        result = await node.execute("hi", make_context(slack=slack, channels=channels))

        assert "- Sending Slack message to 2 channel(s): C1, C2" in result.logs

    @pytest.mark.asyncio
    async def test_first_step_echoes_input(self, slack):
        node = build(SlackNode, "Slack", channel="general")

        result = await node.execute("incoming", make_context(step=1, slack=slack))

        assert result.output == "incoming"
        assert result.logs == ['- Simulating Slack Message: "incoming"']


# ---------------------------------------------------------------------------
# Notion node
# ---------------------------------------------------------------------------


class TestNotionNode:

    @pytest.mark.asyncio
    async def test_creates_page(self, notion):
        node = build(NotionNode, "Notion", databaseId="db-1")

        result = await node.execute("Weekly notes\nMore detail", make_context(notion=notion))

        assert result.output == PAGE_CREATED
        assert result.logs == ["- Creating Notion Page in DB: db-1"]
        notion.create_entry.assert_awaited_once_with("db-1", "Weekly notes", "Weekly notes\nMore detail")

    @pytest.mark.asyncio
    async def test_configured_title(self, notion):
        node = build(NotionNode, "Notion", databaseId="db-1", title="Digest")

        await node.execute("body", make_context(notion=notion))

        assert notion.create_entry.await_args.args[1] == "Digest"

    @pytest.mark.asyncio
    async def test_empty_value_gets_placeholder_title(self, notion):
        node = build(NotionNode, "Notion", databaseId="db-1")

        await node.execute("", make_context(notion=notion))

        assert notion.create_entry.await_args.args[1] == "Workflow output"

    @pytest.mark.asyncio
    async def test_error_passes_value_through(self, notion):
        notion.create_entry.side_effect = IntegrationError("Notion", "object_not_found", 404)
        node = build(NotionNode, "Notion", databaseId="db-1")

        result = await node.execute("body", make_context(notion=notion))

        assert result.output == "body"
        assert result.logs[-1] == "- Notion Error: Notion (404): object_not_found"


# ---------------------------------------------------------------------------
# API clients
# ---------------------------------------------------------------------------


class TestSlackClient:

    @pytest.mark.asyncio
    async def test_no_token(self):
        client = SlackClient()

        assert await client.post_message([ChannelOption(value="C1")], "hi") == {"message": "No Slack token configured"}

    @pytest.mark.asyncio
    async def test_empty_content(self):
        client = SlackClient(token="xoxb-test")

        assert await client.post_message([ChannelOption(value="C1")], "") == {"message": "Content is empty"}

    @pytest.mark.asyncio
    async def test_no_channels(self):
        client = SlackClient(token="xoxb-test")

        assert await client.post_message([], "hi") == {"message": "Channel not selected"}

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-env")

        assert SlackClient().token == "xoxb-env"


class TestNotionClient:

    @pytest.mark.asyncio
    async def test_no_token(self):
        with pytest.raises(IntegrationError, match="No Notion access token"):
            await NotionClient().create_entry("db-1", "t", "c")

    @pytest.mark.asyncio
    async def test_creates_page_under_title_property(self):
        client = NotionClient(token="secret_test")
        database = {"properties": {"Tags": {"type": "multi_select"}, "Name": {"type": "title"}}}
        request = AsyncMock(side_effect=[database, {"id": "page-1"}])

        with patch.object(client, "_request", new=request):
            page = await client.create_entry("db-1", "Title", "Body text")

        assert page == {"id": "page-1"}
        method, url, body = request.await_args_list[1].args[1:]
        assert (method, url) == ("POST", "https://api.notion.com/v1/pages")
        assert body["parent"] == {"type": "database_id", "database_id": "db-1"}
        assert body["properties"]["Name"]["title"][0]["text"]["content"] == "Title"
        assert body["children"][0]["paragraph"]["rich_text"][0]["text"]["content"] == "Body text"

    @pytest.mark.asyncio
    async def test_same_title_and_content_has_no_children(self):
        client = NotionClient(token="secret_test")
        request = AsyncMock(side_effect=[{"properties": {"Name": {"type": "title"}}}, {"id": "page-1"}])

        with patch.object(client, "_request", new=request):
            await client.create_entry("db-1", "Same", "Same")

        assert "children" not in request.await_args_list[1].args[3]

    @pytest.mark.asyncio
    async def test_database_without_title_property(self):
        client = NotionClient(token="secret_test")

        with patch.object(client, "_request", new=AsyncMock(return_value={"properties": {}})):
            with pytest.raises(IntegrationError, match="no title property"):
                await client.create_entry("db-1", "t", "c")
