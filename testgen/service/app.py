"""FastAPI application entrypoint for testgen service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Literal, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..errors import TestGenError
from ..models import ProjectAnalysis
from ..orchestrator import GenerationOutcome, Orchestrator
from ..serialization import diagnostic_to_dict, function_to_dict

SERVICE_VERSION = "0.1.0"


class AnalyzeRequest(BaseModel):
    path: str


class AnalyzeResponse(BaseModel):
    crate_name: str
    root: str
    functions: List[Dict[str, Any]]
    diagnostics: List[Dict[str, Any]]


class GenerateRequest(BaseModel):
    path: str
    dry_run: bool = False
    output_dir: Optional[str] = None
    strategy: Optional[Literal["integration", "unit"]] = None
    parallel: Optional[bool] = None


class GeneratedFile(BaseModel):
    path: str
    cases: int
    content: Optional[str] = None


class GenerateResponse(BaseModel):
    status: str
    dry_run: bool
    files: List[GeneratedFile]
    diagnostics: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str
    version: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing testgen operations."""

    app = FastAPI(title="testgen service", version=SERVICE_VERSION)

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=SERVICE_VERSION)

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> AnalyzeResponse:
        def _run_analyze() -> ProjectAnalysis:
            return orchestrator.run_analyze(payload.path)

        loop = asyncio.get_running_loop()
        analysis = await loop.run_in_executor(None, _run_analyze)
        return AnalyzeResponse(
            crate_name=analysis.crate_name,
            root=analysis.root,
            functions=[function_to_dict(function) for function in analysis.functions()],
            diagnostics=[diagnostic_to_dict(diagnostic) for diagnostic in analysis.diagnostics],
        )

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GenerateResponse:
        def _run_generate() -> GenerationOutcome:
            return orchestrator.run_generate(
                payload.path,
                dry_run=payload.dry_run,
                output_dir=payload.output_dir,
                strategy=payload.strategy,
                parallel=payload.parallel,
            )

        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, _run_generate)
        return GenerateResponse(
            status="ok",
            dry_run=outcome.dry_run,
            files=[
                GeneratedFile(
                    path=test_file.path,
                    cases=test_file.cases,
                    content=test_file.content if outcome.dry_run else None,
                )
                for test_file in outcome.files
            ],
            diagnostics=[diagnostic_to_dict(diagnostic) for diagnostic in outcome.diagnostics],
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(TestGenError)
    async def testgen_error_handler(_: Any, exc: TestGenError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
