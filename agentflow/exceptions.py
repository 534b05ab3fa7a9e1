"""
Exception types raised inside the workflow engine.
"""
from typing import Optional


class AgentFlowError(Exception):
    """Base class for engine errors."""
    pass


class GraphParseError(AgentFlowError):
    """The serialized nodes/edges could not be turned into a graph."""
    pass


class IntegrationError(AgentFlowError):
    """An external integration (Slack, Notion) call failed."""

    def __init__(self, service: str, message: str, status: Optional[int] = None):
        self.service = service
        self.status = status
        super().__init__(f"{service}: {message}" if status is None else f"{service} ({status}): {message}")


class CycleDetected(AgentFlowError):
    """Traversal reached a node it already executed in this run."""

    def __init__(self, node_id: str, step: int):
        self.node_id = node_id
        self.step = step
        super().__init__(f"Cycle detected: node {node_id} revisited at step {step}")
