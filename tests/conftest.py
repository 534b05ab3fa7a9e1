"""Shared fixtures for engine, node and server tests.

Provides:
- Node/edge builders in the editor's serialized shape
- A WorkflowEngine wired to mocked AI, Slack and Notion collaborators
- Environment isolation for provider credentials
"""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from agentflow.config import EngineSettings
from agentflow.workflow import WorkflowEngine
from llm_providers import ProviderResponse

CREDENTIAL_ENV_VARS = [
    "OPENAI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_AI_API_KEY",
    "ANTHROPIC_API_KEY",
    "CLAUDE_API_KEY",
    "GROQ_API_KEY",
    "SLACK_BOT_TOKEN",
    "NOTION_API_SECRET",
]


# ---------------------------------------------------------------------------
# Graph builders
# ---------------------------------------------------------------------------

def make_node(node_id: str, node_type: str, title: str = "", **metadata: Any) -> Dict[str, Any]:
    """Build a node the way the editor serializes it."""
    return {
        "id": node_id,
        "type": "custom",
        "position": {"x": 0, "y": 0},
        "data": {"title": title or node_id, "type": node_type, "metadata": metadata},
    }


def make_edge(source: str, target: str, edge_id: Optional[str] = None) -> Dict[str, Any]:
    return {"id": edge_id or f"{source}-{target}", "source": source, "target": target}


def chain(*node_ids: str) -> List[Dict[str, Any]]:
    return [make_edge(a, b) for a, b in zip(node_ids, node_ids[1:])]


def ai_reply(text: str, cost: float = 0.0, input_tokens: int = 10, output_tokens: int = 5) -> ProviderResponse:
    return ProviderResponse(
        success=True,
        data=text,
        cost=cost,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clean_credentials(monkeypatch):
    """Keep real keys from the developer's shell out of the tests."""
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def invoke_ai() -> AsyncMock:
    return AsyncMock(return_value=ai_reply("AI output"))


@pytest.fixture
def slack() -> MagicMock:
    client = MagicMock()
    client.post_message = AsyncMock(return_value={"message": "Success"})
    return client


@pytest.fixture
def notion() -> MagicMock:
    client = MagicMock()
    client.create_entry = AsyncMock(return_value={"id": "page-1"})
    return client


@pytest.fixture
def engine(invoke_ai, slack, notion) -> WorkflowEngine:
    return WorkflowEngine(
        settings=EngineSettings(),
        credentials=MagicMock(),
        slack=slack,
        notion=notion,
        invoke_ai=invoke_ai,
    )
