"""FastAPI application entrypoint for squeezebot service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..models import Credentials, PipelineOutcome, RunParameters
from ..orchestrator import Orchestrator


class RunRequest(BaseModel):
    clone_url: str
    local_path: str
    repo_owner: str
    repo_name: str
    username: str = "x-access-token"
    password: str = Field(repr=False)
    signing_key: str = Field(repr=False)
    signing_passphrase: str = Field(default="", repr=False)
    fallback_payload: Optional[Dict[str, Any]] = None

    def to_params(self) -> RunParameters:
        return RunParameters(
            clone_url=self.clone_url,
            local_path=Path(self.local_path),
            credentials=Credentials(username=self.username, password=self.password),
            repo_owner=self.repo_owner,
            repo_name=self.repo_name,
            signing_key=self.signing_key,
            signing_passphrase=self.signing_passphrase,
            fallback_payload=self.fallback_payload,
        )


class RunResponse(BaseModel):
    outcome: str


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing pipeline runs."""
    app = FastAPI(title="squeezebot", version="0.1.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/runs", response_model=RunResponse)
    async def start_run(
        payload: RunRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> RunResponse:
        params = payload.to_params()
        loop = asyncio.get_running_loop()
        # Git and compression block; keep them off the event loop.
        outcome: PipelineOutcome = await loop.run_in_executor(None, orchestrator.run, params)
        return RunResponse(outcome=outcome.value)

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(
        _: Any, exc: RuntimeError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
