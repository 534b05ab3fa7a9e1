import logging
from typing import List, Tuple

from agentflow.models import AINodeConfig
from agentflow.nodes.base import BaseNode, ExecutionContext, NodeResult
from llm_providers import AIRequest, ProviderRegistry

logger = logging.getLogger(__name__)

CONTENT_PLACEHOLDER = "{{content}}"


def resolve_provider_and_model(config: AINodeConfig, default_provider: str) -> Tuple[str, str]:
    """
    Pick the provider (node setting or engine default) and a model that provider
    accepts. A model the provider does not list is replaced by the provider's
    default so stale editor settings cannot break a run.
    """
    provider = config.provider or default_provider
    provider_class = ProviderRegistry.get(provider)
    if provider_class is None:
        return provider, ProviderRegistry.default_model_for(provider)
    return provider, provider_class.resolve_model(config.model)


def build_prompt(template: str, value: str) -> str:
    """
    Combine the configured prompt with the carried value.

    ``{{content}}`` is replaced by the value; a prompt without the placeholder
    gets the value appended as input; no prompt at all means the value is the
    prompt.
    """
    if not template:
        return value
    if CONTENT_PLACEHOLDER in template:
        return template.replace(CONTENT_PLACEHOLDER, value)
    if value:
        return f"{template}\n\nInput: {value}"
    return template


class AgentNode(BaseNode):
    """
    AI node: sends the carried value through the configured provider.
    Provider failures are logged and the previous value passes through.
    """

    async def execute(self, value: str, context: ExecutionContext) -> NodeResult:
        config = self.config if isinstance(self.config, AINodeConfig) else AINodeConfig()
        logs: List[str] = []

        for setting in config.ignored_settings:
            logs.append(f"- Ignored invalid AI setting {setting}, using default")

        provider, model = resolve_provider_and_model(config, context.settings.default_provider)
        if config.model and model != config.model:
            logs.append(f"- Model '{config.model}' is not available for {provider}, using {model}")

        prompt = build_prompt(config.prompt, value)
        logs.append(f"- Running AI ({provider}/{model})...")

        if not prompt.strip():
            logs.append("- Skipped AI (No prompt or input provided)")
            return NodeResult(output=value, logs=logs)

        request = AIRequest(
            provider=provider,
            model=model,
            prompt=prompt,
            system_prompt=config.system_prompt,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

        try:
            response = await context.invoke_ai(request)
        except Exception as e:
            logger.error(f"AI node {self.node_id} error: {e}")
            logs.append(f"- AI Error: {e}")
            return NodeResult(output=value, logs=logs)

        if not response.success:
            logs.append(f"- AI Failed: {response.data}")
            return NodeResult(output=value, logs=logs)

        output = response.data
        logs.append(f'- AI Response: "{output[:50]}..."')
        logs.append(f"- AI Cost: ${response.cost:.6f} ({response.input_tokens} in / {response.output_tokens} out tokens)")
        return NodeResult(output=output, logs=logs)
