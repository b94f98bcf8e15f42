"""FastAPI application entrypoint for repoprofile service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ProfilingOptions
from ..models import to_jsonable
from ..organization import OrganizationProfiler, ProfilingError
from ..walker import resolve_repository


class ScanOptions(BaseModel):
    max_depth: Optional[int] = None
    max_files: Optional[int] = None
    cache_results: bool = True
    timeout_ms: Optional[int] = None

    def to_options(self) -> ProfilingOptions:
        return ProfilingOptions(
            max_depth=self.max_depth or 0,
            max_files=self.max_files or 0,
            cache_results=self.cache_results,
            timeout_ms=self.timeout_ms,
        ).normalised()


class ProfileRequest(BaseModel):
    path: str
    options: ScanOptions = Field(default_factory=ScanOptions)


class OrganizationRequest(BaseModel):
    paths: List[str]
    options: ScanOptions = Field(default_factory=ScanOptions)


class ComplianceRequest(BaseModel):
    paths: List[str]


class ProfileResponse(BaseModel):
    path: str
    name: str
    languages: List[Dict[str, Any]]
    frameworks: List[Dict[str, Any]]
    team: Dict[str, Any]
    quality_trends: List[Dict[str, Any]]
    error: Optional[str] = None


class OrganizationResponse(BaseModel):
    shared_technologies: List[str]
    consistency_score: float
    outlier_repositories: List[str]
    best_practice_adoption: Dict[str, float]
    technology_distribution: Dict[str, float]
    organization_standards: Dict[str, Any]
    recommendations: List[str]
    maturity_score: float
    repository_count: int


class ComplianceResponse(BaseModel):
    overall_compliance: float
    standards_adoption: Dict[str, float]
    security_compliance: float
    accessibility_compliance: float
    performance_compliance: float
    repository_compliance: Dict[str, float]
    violations: Dict[str, List[str]]


class HealthResponse(BaseModel):
    status: str
    capabilities: List[str] = Field(default_factory=list)


def _default_profiler() -> OrganizationProfiler:
    return OrganizationProfiler()


async def _run_blocking(func: Callable[[], Any]) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    profiler_factory: Callable[[], OrganizationProfiler] = _default_profiler,
) -> FastAPI:
    """Create the FastAPI application exposing repoprofile operations."""
    app = FastAPI(title="RepoProfile Service", version="1.0.0")
    shared: Dict[str, OrganizationProfiler] = {}

    async def get_profiler() -> OrganizationProfiler:
        # One profiler per app so its result caches survive across requests.
        if "profiler" not in shared:
            shared["profiler"] = profiler_factory()
        return shared["profiler"]

    @app.get("/health", response_model=HealthResponse)
    async def health(
        profiler: OrganizationProfiler = Depends(get_profiler),
    ) -> HealthResponse:
        return HealthResponse(status="ok", capabilities=profiler.capabilities())

    @app.post("/profile", response_model=ProfileResponse)
    async def profile_repository(
        payload: ProfileRequest,
        profiler: OrganizationProfiler = Depends(get_profiler),
    ) -> ProfileResponse:
        def _run_profile() -> Any:
            root = resolve_repository(payload.path)
            return profiler.profile_repository(str(root), payload.options.to_options())

        result = await _run_blocking(_run_profile)
        return ProfileResponse(**to_jsonable(result))

    @app.post("/organization", response_model=OrganizationResponse)
    async def analyze_organization(
        payload: OrganizationRequest,
        profiler: OrganizationProfiler = Depends(get_profiler),
    ) -> OrganizationResponse:
        options = payload.options.to_options()

        def _run_organization() -> Any:
            if len(payload.paths) == 1:
                return profiler.analyze(payload.paths[0], options)
            return profiler.analyze_multiple_repositories(payload.paths, options)

        result = await _run_blocking(_run_organization)
        return OrganizationResponse(**to_jsonable(result))

    @app.post("/compliance", response_model=ComplianceResponse)
    async def compare_compliance(
        payload: ComplianceRequest,
        profiler: OrganizationProfiler = Depends(get_profiler),
    ) -> ComplianceResponse:
        result = await _run_blocking(
            lambda: profiler.compare_standards_compliance(payload.paths)
        )
        return ComplianceResponse(**to_jsonable(result))

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ProfilingError)
    async def profiling_error_handler(_: Any, exc: ProfilingError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
