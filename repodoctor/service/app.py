"""FastAPI application entrypoint for repodoctor service mode."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..logging import get_logger
from ..models import DoctorOptions, DoctorResult
from ..orchestrator import Doctor

logger = get_logger("service")


class DiagnoseRequest(BaseModel):
    path: str
    category: Optional[str] = None
    project: Optional[str] = None
    fix: bool = False
    dry_run: bool = False


class HealthResponse(BaseModel):
    status: str


class FixLocks:
    """One lock per resolved project root, so fixing runs never overlap on a tree."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def for_path(self, path: str | Path) -> threading.Lock:
        key = str(Path(path).expanduser().resolve())
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


def _default_doctor() -> Doctor:
    return Doctor()


def create_app(
    doctor_factory: Callable[[], Doctor] = _default_doctor,
) -> FastAPI:
    """Create the FastAPI application exposing doctor runs."""

    app = FastAPI(title="repodoctor", version="1.0.0")
    fix_locks = FixLocks()
    app.state.fix_locks = fix_locks

    async def get_doctor() -> Doctor:
        return doctor_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/diagnose")
    async def diagnose(
        payload: DiagnoseRequest,
        doctor: Doctor = Depends(get_doctor),
    ) -> Dict[str, Any]:
        options = DoctorOptions(
            fix=payload.fix,
            dry_run=payload.dry_run,
            category=payload.category,
            project=payload.project,
        )

        def _run() -> DoctorResult:
            if not options.fix or options.dry_run:
                return doctor.run(payload.path, options)
            # Fixes depend on the findings of the same run, so the lock spans both.
            with fix_locks.for_path(payload.path):
                return doctor.run(payload.path, options)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run)
        logger.info("Diagnosed %s: %d (%s)", payload.path, result.score, result.grade)
        return result.to_dict()

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
