"""FastAPI control surface for a running trigger controller."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from fastapi import FastAPI
from pydantic import BaseModel

from ..models import GenerationResult
from ..trigger import TriggerController


class DocumentRequest(BaseModel):
    path: str
    guidance: Optional[str] = None


class PathRequest(BaseModel):
    path: str


class ResultResponse(BaseModel):
    file_path: str
    success: bool
    output_location: Optional[str] = None
    error_message: Optional[str] = None


class FileStatusResponse(BaseModel):
    path: str
    lines_changed: int
    documented: bool
    in_cooldown: bool


class PendingResponse(BaseModel):
    paths: List[str]


class StatusResponse(BaseModel):
    status: str


def _to_response(result: GenerationResult) -> ResultResponse:
    return ResultResponse(
        file_path=result.file_path,
        success=result.success,
        output_location=result.output_location,
        error_message=result.error_message,
    )


def create_app(controller: TriggerController) -> FastAPI:
    """Create the FastAPI application exposing controller operations."""

    app = FastAPI(title="docwatch", version="0.1.0")

    @app.get("/health", response_model=StatusResponse)
    async def health() -> StatusResponse:
        return StatusResponse(status="ok")

    @app.get("/files/changes", response_model=FileStatusResponse)
    async def file_changes(path: str) -> FileStatusResponse:
        return FileStatusResponse(
            path=path,
            lines_changed=controller.get_file_changes(path),
            documented=controller.is_file_documented(path),
            in_cooldown=controller.is_in_cooldown(path),
        )

    @app.get("/files/pending", response_model=PendingResponse)
    async def pending() -> PendingResponse:
        return PendingResponse(paths=controller.pending_paths())

    @app.post("/files/document", response_model=ResultResponse)
    async def document(payload: DocumentRequest) -> ResultResponse:
        # Generation blocks on the LLM; keep it off the event loop.
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None, controller.document_file, payload.path, payload.guidance
        )
        return _to_response(result)

    @app.post("/files/reset", response_model=StatusResponse)
    async def reset_file(payload: PathRequest) -> StatusResponse:
        controller.reset_file_tracking(payload.path)
        return StatusResponse(status="ok")

    @app.post("/reset", response_model=StatusResponse)
    async def reset_all() -> StatusResponse:
        controller.reset()
        return StatusResponse(status="ok")

    return app


def run_service(
    controller: TriggerController, host: str = "127.0.0.1", port: int = 8765
) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(controller), host=host, port=port, log_level="warning")
