"""Tests for the AI node: prompt building, model fallback and provider outcomes."""

from unittest.mock import AsyncMock

import pytest

from agentflow.config import EngineSettings
from agentflow.models import AINodeConfig, RunOptions, WorkflowNode
from agentflow.nodes.agent_node import AgentNode, build_prompt, resolve_provider_and_model
from agentflow.nodes.base import ExecutionContext
from llm_providers import ProviderResponse

from conftest import ai_reply, make_node


def make_context(invoke_ai, step: int = 2, **settings) -> ExecutionContext:
    return ExecutionContext(
        step=step,
        options=RunOptions(),
        settings=EngineSettings(**settings),
        invoke_ai=invoke_ai,
        slack=None,
        notion=None,
    )


def ai_node(**metadata) -> AgentNode:
    return AgentNode(WorkflowNode.model_validate(make_node("ai-1", "AI", **metadata)))


class TestBuildPrompt:

    def test_placeholder_substitution(self):
        assert build_prompt("Summarize: {{content}}", "Q3 was good.") == "Summarize: Q3 was good."

    def test_placeholder_repeated(self):
        assert build_prompt("{{content}} / {{content}}", "x") == "x / x"

    def test_placeholder_with_empty_value(self):
        assert build_prompt("Summarize: {{content}}", "") == "Summarize: "

    def test_prompt_without_placeholder_gets_value_appended(self):
        assert build_prompt("Translate to French", "hello") == "Translate to French\n\nInput: hello"

    def test_prompt_without_placeholder_and_empty_value(self):
        assert build_prompt("Tell me a joke", "") == "Tell me a joke"

    def test_no_prompt_uses_value(self):
        assert build_prompt("", "just the input") == "just the input"

    def test_nothing_at_all(self):
        assert build_prompt("", "") == ""


class TestResolveProviderAndModel:

    def test_defaults_to_engine_provider(self):
        provider, model = resolve_provider_and_model(AINodeConfig(), "Groq")

        assert provider == "Groq"
        assert model == "llama-3.1-70b-versatile"

    def test_known_model_is_kept(self):
        config = AINodeConfig(provider="OpenAI", model="gpt-4o")

        assert resolve_provider_and_model(config, "Groq") == ("OpenAI", "gpt-4o")

    def test_dated_model_matches_by_substring(self):
        config = AINodeConfig(provider="Anthropic", model="claude-3-haiku-20240307")

        assert resolve_provider_and_model(config, "Groq")[1] == "claude-3-haiku-20240307"

    @pytest.mark.parametrize(
        "provider, expected",
        [
            ("OpenAI", "gpt-4o-mini"),
            ("Google Gemini", "gemini-1.5-flash"),
            ("Anthropic", "claude-3-haiku-20240307"),
            ("Groq", "llama-3.1-70b-versatile"),
            ("Ollama", "llama3.2"),
            ("Mystery AI", "llama-3.1-70b-versatile"),
        ],
    )
    def test_unknown_model_falls_back_to_provider_default(self, provider, expected):
        config = AINodeConfig(provider=provider, model="not-a-real-model")

        assert resolve_provider_and_model(config, "Groq") == (provider, expected)


class TestAgentNode:

    @pytest.mark.asyncio
    async def test_success_returns_response_text(self):
        invoke_ai = AsyncMock(return_value=ai_reply("A short summary", cost=0.000123, input_tokens=40, output_tokens=8))
        node = ai_node(provider="OpenAI", model="gpt-4o-mini", prompt="Summarize: {{content}}")

        result = await node.execute("long text", make_context(invoke_ai))

        assert result.output == "A short summary"
        assert "- Running AI (OpenAI/gpt-4o-mini)..." in result.logs
        assert '- AI Response: "A short summary..."' in result.logs
        assert "- AI Cost: $0.000123 (40 in / 8 out tokens)" in result.logs

    @pytest.mark.asyncio
    async def test_request_carries_node_settings(self):
        invoke_ai = AsyncMock(return_value=ai_reply("ok"))
        node = ai_node(provider="Groq", prompt="p", systemPrompt="Be terse.", temperature=0.2, maxTokens=50)

        await node.execute("", make_context(invoke_ai))

        request = invoke_ai.await_args.args[0]
        assert request.system_prompt == "Be terse."
        assert request.temperature == 0.2
        assert request.max_tokens == 50
        assert request.model == "llama-3.1-70b-versatile"

    @pytest.mark.asyncio
    async def test_model_fallback_is_logged(self):
        invoke_ai = AsyncMock(return_value=ai_reply("ok"))
        node = ai_node(provider="OpenAI", model="claude-9000", prompt="hi")

        result = await node.execute("", make_context(invoke_ai))

        assert invoke_ai.await_args.args[0].model == "gpt-4o-mini"
        assert "- Model 'claude-9000' is not available for OpenAI, using gpt-4o-mini" in result.logs
        assert result.output == "ok"

    @pytest.mark.asyncio
    async def test_default_provider_from_settings(self):
        invoke_ai = AsyncMock(return_value=ai_reply("ok"))
        node = ai_node(prompt="hi")

        await node.execute("", make_context(invoke_ai, default_provider="Ollama"))

        request = invoke_ai.await_args.args[0]
        assert request.provider == "Ollama"
        assert request.model == "llama3.2"

    @pytest.mark.asyncio
    async def test_empty_prompt_and_value_skips_call(self):
        invoke_ai = AsyncMock()
        node = ai_node()

        result = await node.execute("", make_context(invoke_ai))

        invoke_ai.assert_not_awaited()
        assert result.output == ""
        assert result.logs.count("- Skipped AI (No prompt or input provided)") == 1

    @pytest.mark.asyncio
    async def test_failure_passes_value_through(self):
        invoke_ai = AsyncMock(return_value=ProviderResponse.failure("OpenAI Key not found (Add in Settings)"))
        node = ai_node(provider="OpenAI", prompt="{{content}}")

        result = await node.execute("keep me", make_context(invoke_ai))

        assert result.output == "keep me"
        assert "- AI Failed: OpenAI Key not found (Add in Settings)" in result.logs

    @pytest.mark.asyncio
    async def test_raised_exception_passes_value_through(self):
        invoke_ai = AsyncMock(side_effect=RuntimeError("connection reset"))
        node = ai_node(prompt="{{content}}")

        result = await node.execute("keep me", make_context(invoke_ai))

        assert result.output == "keep me"
        assert "- AI Error: connection reset" in result.logs

    @pytest.mark.asyncio
    async def test_invalid_setting_is_logged_and_defaulted(self):
        invoke_ai = AsyncMock(return_value=ai_reply("ok"))
        node = ai_node(prompt="hi", temperature="warm", maxTokens=-5)

        result = await node.execute("", make_context(invoke_ai))

        request = invoke_ai.await_args.args[0]
        assert (request.temperature, request.max_tokens) == (0.7, 1000)
        assert "- Ignored invalid AI setting temperature='warm', using default" in result.logs
        assert "- Ignored invalid AI setting maxTokens=-5, using default" in result.logs
        assert result.output == "ok"
