"""
Pydantic models for the workflow graph, node configuration and run results.
"""
import json
import uuid
from enum import Enum
from typing import List, Dict, Any, Optional, Union
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from agentflow.exceptions import GraphParseError

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class NodeType(str, Enum):
    """Node types the editor can place on the canvas."""
    TRIGGER = "Trigger"
    AI = "AI"
    SLACK = "Slack"
    NOTION = "Notion"
    CONDITION = "Condition"
    WAIT = "Wait"
    EMAIL = "Email"
    ACTION = "Action"
    GOOGLE_DRIVE = "Google Drive"
    GOOGLE_CALENDAR = "Google Calendar"
    CUSTOM_WEBHOOK = "Custom Webhook"
    DISCORD = "Discord"
    AGENT = "Agent"


class BranchPolicy(str, Enum):
    """How traversal picks among several outgoing edges."""
    LINEAR_ONLY = "linear_only"    # first edge in edge-list order
    FIRST_MATCH = "first_match"    # first edge whose target exists
    ALL_PARALLEL = "all_parallel"  # not supported by the engine


def _drop_none(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


def _option_value(option: Any) -> Optional[str]:
    """Editor selects store either a bare id or {label, value}."""
    if isinstance(option, dict):
        option = option.get("value")
    if option in (None, ""):
        return None
    return str(option)


# (metadata keys, type, minimum, maximum)
_AI_NUMERIC_SETTINGS = (
    (("temperature",), float, 0, 2),
    (("maxTokens", "max_tokens"), int, 1, None),
)


def _bounded_number(raw: Any, cast: type, low: float, high: Optional[float]) -> Optional[Any]:
    if isinstance(raw, bool):
        return None
    try:
        value = cast(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if value != value or value < low or (high is not None and value > high):
        return None
    return value


# ============ Per-type node configuration ============

class AINodeConfig(BaseModel):
    """Configuration of an AI node."""
    provider: Optional[str] = Field(default=None, description="Provider display name or id; engine default when empty")
    model: Optional[str] = None
    prompt: str = ""
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, alias="systemPrompt")
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=1000, alias="maxTokens", ge=1)
    # Editor values that were out of range or unparseable, replaced by defaults
    ignored_settings: List[str] = Field(default_factory=list, exclude=True)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _clean_settings(cls, data: Any) -> Any:
        data = _drop_none(data)
        if not isinstance(data, dict):
            return data
        data = dict(data)
        ignored = []
        for keys, cast, low, high in _AI_NUMERIC_SETTINGS:
            for key in keys:
                if key not in data:
                    continue
                value = _bounded_number(data[key], cast, low, high)
                if value is None:
                    ignored.append(f"{key}={data.pop(key)!r}")
                else:
                    data[key] = value
        data["ignored_settings"] = ignored
        return data

    @field_validator("system_prompt")
    @classmethod
    def _default_system_prompt(cls, v: str) -> str:
        return v or DEFAULT_SYSTEM_PROMPT

    @field_validator("provider", "model")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class SlackNodeConfig(BaseModel):
    """Configuration of a Slack node: the channel to post into."""
    channel_id: Optional[str] = None

    model_config = {"extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _resolve_channel(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        for key in ("channel_id", "channelId", "channel", "selectedChannel"):
            value = _option_value(data.get(key))
            if value:
                return {"channel_id": value}
        return {}


class NotionNodeConfig(BaseModel):
    """Configuration of a Notion node: the database that receives new pages."""
    database_id: Optional[str] = None
    title: Optional[str] = None

    model_config = {"extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _resolve_database(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        database_id = None
        for key in ("database_id", "databaseId", "database"):
            database_id = _option_value(data.get(key))
            if database_id:
                break
        return {"database_id": database_id, "title": data.get("title") or None}


NodeConfig = Union[AINodeConfig, SlackNodeConfig, NotionNodeConfig]

CONFIG_TYPES: Dict[str, type] = {
    NodeType.AI.value: AINodeConfig,
    NodeType.SLACK.value: SlackNodeConfig,
    NodeType.NOTION.value: NotionNodeConfig,
}


def resolve_node_config(node_type: str, metadata: Dict[str, Any]) -> Optional[NodeConfig]:
    """Turn raw metadata into the typed config for node_type (None for passthrough types)."""
    config_cls = CONFIG_TYPES.get(node_type)
    if config_cls is None:
        return None
    return config_cls.model_validate(metadata or {})


# ============ Graph ============

class WorkflowNode(BaseModel):
    """A node in the workflow graph."""
    id: str
    type: str
    name: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    config: Optional[NodeConfig] = Field(default=None, exclude=True)
    config_error: Optional[str] = Field(default=None, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _flatten_editor_data(cls, data: Any) -> Any:
        # Editor nodes look like {id, type, position, data: {title, type, metadata}}
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            inner = data["data"]
            data = {
                "id": data.get("id"),
                "type": inner.get("type") or data.get("type"),
                "name": inner.get("title") or data.get("name") or "",
                "metadata": inner.get("metadata") or {},
            }
        if isinstance(data, dict) and data.get("metadata") is None:
            data = {**data, "metadata": {}}
        return data

    @model_validator(mode="after")
    def _resolve_config(self) -> "WorkflowNode":
        try:
            self.config = resolve_node_config(self.type, self.metadata)
        except ValidationError as e:
            # Reported when the node runs; the carried value passes through
            self.config = None
            self.config_error = _first_error(e)
        return self

    @property
    def label(self) -> str:
        return self.name or self.id


class WorkflowEdge(BaseModel):
    """A connection between two nodes."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    source_id: str = Field(alias="source")
    target_id: str = Field(alias="target")
    label: Optional[str] = None

    model_config = {"populate_by_name": True}


class WorkflowGraph(BaseModel):
    """An immutable nodes/edges pair handed to the engine for one run."""
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "WorkflowGraph":
        seen = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id: {node.id}")
            seen.add(node.id)
        return self

    @classmethod
    def parse(cls, nodes: Union[str, List[Any]], edges: Union[str, List[Any]]) -> "WorkflowGraph":
        """
        Build a graph from serialized nodes and edges.

        Accepts JSON strings or already-decoded lists. Raises GraphParseError on
        anything that is not a list of well-formed nodes/edges.
        """
        raw_nodes = _decode_collection(nodes, "nodes")
        raw_edges = _decode_collection(edges, "edges")
        try:
            return cls(nodes=raw_nodes, edges=raw_edges)
        except ValidationError as e:
            raise GraphParseError(f"Invalid workflow graph: {e.error_count()} validation error(s): {_first_error(e)}") from e

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def get_entry_nodes(self) -> List[WorkflowNode]:
        """Nodes with no incoming edges, in node-list order."""
        targets = {e.target_id for e in self.edges}
        return [n for n in self.nodes if n.id not in targets]

    def get_outgoing_edges(self, node_id: str) -> List[WorkflowEdge]:
        """Edges leaving node_id, in edge-list order."""
        return [e for e in self.edges if e.source_id == node_id]


def _decode_collection(value: Union[str, List[Any]], name: str) -> List[Any]:
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise GraphParseError(f"{name} is not valid JSON: {e}") from e
    if not isinstance(value, list):
        raise GraphParseError(f"{name} must be a list, got {type(value).__name__}")
    return value


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err.get('msg')}" if location else str(err.get("msg"))


# ============ Run options / results ============

class ChannelOption(BaseModel):
    """A Slack channel picked in the run dialog."""
    label: str = "Channel"
    value: str


class RunOptions(BaseModel):
    """Run-scoped parameters supplied alongside the graph."""
    selected_channels: List[ChannelOption] = Field(default_factory=list)
    branch_policy: BranchPolicy = BranchPolicy.LINEAR_ONLY
    max_steps: Optional[int] = Field(default=None, ge=1)


class RunResult(BaseModel):
    """Outcome of one run, rendered by the UI as a toast plus a trace."""
    success: bool
    message: str
    logs: List[str] = Field(default_factory=list)
