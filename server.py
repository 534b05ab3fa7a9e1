"""
FastAPI server exposing the workflow engine, with WebSocket log streaming.
"""
import json
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List, Optional, Set, Union

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load .env file
load_dotenv()

from agentflow import __version__
from agentflow.config import EngineSettings
from agentflow.cost import calculate_cost, estimate_tokens
from agentflow.models import ChannelOption, RunOptions, RunResult
from agentflow.workflow import WorkflowEngine
from llm_providers import AIRequest, ProviderRegistry, ProviderResponse, invoke_provider

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections for broadcasting run logs."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info(f"WebSocket connected. Total: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket):
        self.active_connections.discard(websocket)
        logger.info(f"WebSocket disconnected. Total: {len(self.active_connections)}")

    async def broadcast(self, message: dict):
        """Send message to all connected clients, dropping the ones that fail."""
        if not self.active_connections:
            return

        data = json.dumps(message, default=str)
        disconnected = set()

        for connection in self.active_connections:
            try:
                await connection.send_text(data)
            except Exception as e:
                logger.debug(f"Dropping WebSocket client: {e}")
                disconnected.add(connection)

        for conn in disconnected:
            self.active_connections.discard(conn)


manager = ConnectionManager()
workflow_engine: Optional[WorkflowEngine] = None


async def broadcast_log(message: str):
    await manager.broadcast({
        "type": "log",
        "data": {
            "timestamp": datetime.now().isoformat(),
            "message": message
        }
    })


def get_engine() -> WorkflowEngine:
    global workflow_engine
    if workflow_engine is None:
        workflow_engine = WorkflowEngine(settings=EngineSettings.from_env(), on_log=broadcast_log)
    return workflow_engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting AgentFlow server...")
    engine = get_engine()
    logger.info(f"Engine ready (default provider: {engine.settings.default_provider}, max steps: {engine.settings.max_steps})")
    yield
    logger.info("Shutting down server...")


app = FastAPI(
    title="AgentFlow",
    description="Workflow execution engine for AI, Slack and Notion automations",
    version=__version__,
    lifespan=lifespan
)

ALLOWED_ORIGINS = os.getenv('AGENTFLOW_ALLOWED_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',')

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error"}
    )


# ============ Request models ============

class ExecuteWorkflowRequest(BaseModel):
    """Request to run a workflow graph once."""
    nodes: Union[str, List[Any]]
    edges: Union[str, List[Any]]
    selected_slack_channels: List[ChannelOption] = Field(default_factory=list)
    user_input: Optional[str] = None


class EstimateRequest(BaseModel):
    """Pre-flight cost estimate for a prompt."""
    model: str
    prompt: str = ""
    expected_output_tokens: Optional[int] = Field(default=None, ge=0)


# ============ Endpoints ============

@app.get("/api/health")
async def health():
    return {
        "status": "ok",
        "version": __version__,
        "providers": ProviderRegistry.get_available(),
    }


@app.post("/api/workflows/execute", response_model=RunResult)
async def execute_workflow(request: ExecuteWorkflowRequest) -> RunResult:
    """Run a workflow and return its trace."""
    options = RunOptions(selected_channels=request.selected_slack_channels)
    return await get_engine().execute(request.nodes, request.edges, request.user_input, options)


@app.post("/api/ai/test", response_model=ProviderResponse)
async def run_ai_request(request: AIRequest) -> ProviderResponse:
    """Send a single prompt to a provider, outside of any workflow."""
    engine = get_engine()
    return await invoke_provider(request, credentials=engine.credentials, settings=engine.settings)


@app.post("/api/ai/estimate")
async def estimate_ai_cost(request: EstimateRequest):
    input_tokens = estimate_tokens(request.prompt)
    output_tokens = request.expected_output_tokens if request.expected_output_tokens is not None else input_tokens
    cost = calculate_cost(request.model, input_tokens, output_tokens)
    return {
        "model": request.model,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "cost": float(cost),
    }


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for live run logs."""
    await manager.connect(websocket)
    await websocket.send_json({
        "type": "connected",
        "data": {"message": "Connected to AgentFlow"}
    })

    try:
        while True:
            data = await websocket.receive_text()
            logger.debug(f"Received from client: {data}")
    except WebSocketDisconnect:
        manager.disconnect(websocket)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
