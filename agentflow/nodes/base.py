from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List

from agentflow.config import EngineSettings
from agentflow.models import RunOptions, WorkflowNode


@dataclass
class NodeResult:
    """What an executor hands back: the next carried value and its trace lines."""
    output: str
    logs: List[str] = field(default_factory=list)


@dataclass
class ExecutionContext:
    """Per-step view of the run given to executors."""
    step: int
    options: RunOptions
    settings: EngineSettings
    invoke_ai: Callable[..., Awaitable[Any]]
    slack: Any
    notion: Any


class BaseNode:
    """
    Base executor. Subclasses override execute; none of them may raise out of
    it, external failures turn into a passthrough with a log line.
    """

    def __init__(self, node: WorkflowNode):
        self.node = node
        self.node_id = node.id
        self.config = node.config

    async def execute(self, value: str, context: ExecutionContext) -> NodeResult:
        raise NotImplementedError

    @staticmethod
    def passthrough(value: str, *logs: str) -> NodeResult:
        return NodeResult(output=value, logs=list(logs))
