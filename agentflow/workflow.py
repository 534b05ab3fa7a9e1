"""
Workflow Engine - linear execution of a node/edge graph from its entry node.

A run parses the graph, picks the node nobody points at, then repeatedly
executes the current node and follows one outgoing edge. The value produced
by each node is carried into the next one. Only a malformed graph or a graph
without an entry node fail the run; everything that goes wrong inside a node
is logged and the previous value passes through.
"""
import asyncio
import logging
from functools import partial
from typing import Any, Callable, List, Optional, Union

from agentflow.config import EngineSettings
from agentflow.credentials import CredentialStore
from agentflow.exceptions import CycleDetected, GraphParseError
from agentflow.integrations import NotionClient, SlackClient
from agentflow.models import BranchPolicy, RunOptions, RunResult, WorkflowGraph, WorkflowNode
from agentflow.nodes import ExecutionContext, NodeRegistry, NodeResult, initialize_default_registry
from llm_providers import invoke_provider

logger = logging.getLogger(__name__)

initialize_default_registry()

NO_START_NODE = "Could not determine start node (circular dependency?)"


class RunTrace:
    """Ordered trace lines of one run, mirrored to the logger and an optional listener."""

    def __init__(self, on_log: Optional[Callable[[str], Any]] = None):
        self.lines: List[str] = []
        self.on_log = on_log

    async def add(self, message: str):
        self.lines.append(message)
        logger.info(message)
        if not self.on_log:
            return
        try:
            # Check if on_log is a coroutine or sync function
            if asyncio.iscoroutinefunction(self.on_log):
                await self.on_log(message)
            else:
                self.on_log(message)
        except Exception as e:
            logger.error(f"Log listener failed: {e}")


class WorkflowEngine:
    """
    Executes workflow graphs. The engine keeps no per-run state, so one
    instance can serve concurrent runs.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        credentials: Optional[CredentialStore] = None,
        slack: Optional[SlackClient] = None,
        notion: Optional[NotionClient] = None,
        invoke_ai: Optional[Callable] = None,
        on_log: Optional[Callable[[str], Any]] = None,
    ):
        self.settings = settings or EngineSettings()
        self.credentials = credentials or CredentialStore(self.settings.api_keys_path, self.settings.user_id)
        self.slack = slack or SlackClient()
        self.notion = notion or NotionClient()
        self.invoke_ai = invoke_ai or partial(invoke_provider, credentials=self.credentials, settings=self.settings)
        self.on_log = on_log

    async def execute(
        self,
        nodes: Union[str, List[Any]],
        edges: Union[str, List[Any]],
        user_input: Optional[str] = None,
        options: Optional[RunOptions] = None,
    ) -> RunResult:
        """
        Run the workflow once.

        Args:
            nodes: Serialized node list (JSON string or decoded list)
            edges: Serialized edge list (JSON string or decoded list)
            user_input: Initial carried value
            options: Run-scoped selections (Slack channels, branch policy, step limit)

        Returns:
            RunResult with the ordered trace
        """
        options = options or RunOptions()
        trace = RunTrace(self.on_log)
        await trace.add("Starting execution...")

        if options.branch_policy == BranchPolicy.ALL_PARALLEL:
            message = "Branch policy 'all_parallel' is not supported; runs follow a single path"
            await trace.add(f"Error: {message}")
            return RunResult(success=False, message=message, logs=trace.lines)

        try:
            graph = WorkflowGraph.parse(nodes, edges)
        except GraphParseError as e:
            await trace.add(f"Error: {e}")
            return RunResult(success=False, message=f"Failed to parse workflow graph: {e}", logs=trace.lines)

        await trace.add(f"Loaded {len(graph.nodes)} nodes and {len(graph.edges)} edges")

        entry_nodes = graph.get_entry_nodes()
        if not entry_nodes:
            await trace.add(f"Error: {NO_START_NODE}")
            return RunResult(success=False, message=NO_START_NODE, logs=trace.lines)

        start_node = entry_nodes[0]
        if len(entry_nodes) > 1:
            ignored = ", ".join(n.id for n in entry_nodes[1:])
            await trace.add(f"Found {len(entry_nodes)} entry nodes; starting at the first in list order (ignored: {ignored})")
        await trace.add(f"Starting at node: {start_node.label} ({start_node.type})")

        value = user_input or ""
        if not value.strip():
            await trace.add("⚠️ No input provided - using empty input. Provide input when running the workflow for real data.")
        else:
            await trace.add(f'📥 Input received: "{value[:100]}{"..." if len(value) > 100 else ""}"')

        try:
            await self._walk(graph, start_node, value, options, trace)
        except Exception as e:
            logger.exception(f"Workflow execution failed: {e}")
            await trace.add(f"Error: {e}")
            return RunResult(success=False, message=str(e) or "Unknown error occurred", logs=trace.lines)

        await trace.add("Workflow execution completed successfully")
        return RunResult(success=True, message="Workflow completed", logs=trace.lines)

    async def _walk(self, graph: WorkflowGraph, start_node: WorkflowNode, value: str, options: RunOptions, trace: RunTrace) -> str:
        """Step loop. Returns the final carried value."""
        max_steps = options.max_steps or self.settings.max_steps
        visited = set()
        current: Optional[WorkflowNode] = start_node
        step = 0

        while current is not None:
            if step >= max_steps:
                await trace.add(f"⚠️ Step limit ({max_steps}) reached; stopping before {current.label}")
                break

            step += 1
            visited.add(current.id)
            await trace.add(f"Executing Node: {current.type}")

            context = ExecutionContext(
                step=step,
                options=options,
                settings=self.settings,
                invoke_ai=self.invoke_ai,
                slack=self.slack,
                notion=self.notion,
            )
            result = await self._execute_node(current, value, context)
            for line in result.logs:
                await trace.add(line)
            value = result.output

            try:
                current = await self._next_node(graph, current, visited, step, options.branch_policy, trace)
            except CycleDetected as e:
                await trace.add(f"🔄 {e}; stopping")
                break

        return value

    async def _execute_node(self, node: WorkflowNode, value: str, context: ExecutionContext) -> NodeResult:
        """Execute a single node, turning any stray exception into a passthrough."""
        if node.config_error:
            return NodeResult(output=value, logs=[f"- Skipped {node.type}: invalid configuration ({node.config_error})"])

        executor = NodeRegistry.create(node)
        try:
            return await executor.execute(value, context)
        except Exception as e:
            logger.error(f"Node {node.id} error: {e}")
            return NodeResult(output=value, logs=[f"- Node error ({node.type}): {e}"])

    async def _next_node(
        self,
        graph: WorkflowGraph,
        node: WorkflowNode,
        visited: set,
        step: int,
        policy: BranchPolicy,
        trace: RunTrace,
    ) -> Optional[WorkflowNode]:
        """Follow one outgoing edge of node according to policy; None ends the run."""
        outgoing = graph.get_outgoing_edges(node.id)
        if not outgoing:
            return None

        if policy == BranchPolicy.FIRST_MATCH:
            edge = next((e for e in outgoing if graph.get_node(e.target_id) is not None), None)
            if edge is None:
                await trace.add(f"No outgoing edge of {node.label} leads to a known node; ending run")
                return None
        else:
            edge = outgoing[0]

        if len(outgoing) > 1:
            await trace.add(f"{node.label} has {len(outgoing)} outgoing edges; following {edge.id} to {edge.target_id}, ignoring {len(outgoing) - 1}")

        target = graph.get_node(edge.target_id)
        if target is None:
            await trace.add(f"Edge {edge.id} points to unknown node {edge.target_id}; ending run")
            return None
        if target.id in visited:
            raise CycleDetected(target.id, step + 1)
        return target
