from .base import BaseNode, ExecutionContext, NodeResult
from .registry import NodeRegistry, initialize_default_registry
from .trigger_nodes import TriggerNode, PassthroughNode

__all__ = [
    'BaseNode',
    'ExecutionContext',
    'NodeResult',
    'NodeRegistry',
    'initialize_default_registry',
    'TriggerNode',
    'PassthroughNode',
]
