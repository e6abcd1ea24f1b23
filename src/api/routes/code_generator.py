"""Code generator API routes.

Endpoints under /api/v1/code-generator:
- GET /health
- POST /generate - Code from natural-language requirements (WRITE_CODE)
- POST /generate/tests - Unit tests for supplied code (WRITE_CODE)
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import Field

from src.api.dependencies import get_code_analysis_service
from src.core.config import get_settings
from src.core.constants import CODE_GENERATOR_PREFIX
from src.core.exceptions import AIServiceError
from src.core.logging import get_logger
from src.schemas.analysis import AnalysisRequest, AnalysisType, CamelModel
from src.services.code_analysis import CodeAnalysisService


logger = get_logger(__name__)

router = APIRouter(prefix=CODE_GENERATOR_PREFIX, tags=["Code Generator"])

SERVICE_VERSION = "1.0.0"
DEFAULT_LANGUAGE = "java"


# =============================================================================
# Request Models
# =============================================================================


class GenerateCodeRequest(CamelModel):
    """Requirements for code generation; ``prompt`` is accepted as a synonym."""

    requirements: str | None = Field(default=None, description="What the code should do")
    prompt: str | None = Field(default=None, description="Alias for requirements")
    language: str = Field(default=DEFAULT_LANGUAGE, description="Target language")
    service: str | None = Field(default=None, description="Chat service name")
    api_key: str | None = Field(default=None, description="Per-request provider API key")

    @property
    def text(self) -> str:
        return (self.requirements or self.prompt or "").strip()


class GenerateTestsRequest(CamelModel):
    """Code to write unit tests for."""

    code: str = Field(default="", description="Code under test")
    language: str = Field(default=DEFAULT_LANGUAGE, description="Language of the code")
    framework: str | None = Field(default=None, description="Test framework, e.g. JUnit 5")
    service: str | None = Field(default=None, description="Chat service name")
    api_key: str | None = Field(default=None, description="Per-request provider API key")


def build_test_requirements(code: str, language: str, framework: str | None) -> str:
    """Requirement text asking for unit tests of the given code."""
    using = f" using {framework}" if framework else ""
    return f"Write unit tests for the following {language} code{using}:\n\n{code}"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


async def _write_code(
    requirements: str,
    language: str,
    service: str | None,
    api_key: str | None,
    code_analysis: CodeAnalysisService,
) -> str:
    request = AnalysisRequest(
        code=requirements,
        analysis_type=AnalysisType.WRITE_CODE,
        language=language,
        api_key=api_key,
    )
    response = await code_analysis.analyze_stateless(
        request, service or get_settings().default_ai_service
    )
    return response.analysis


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/health")
async def health() -> dict[str, Any]:
    return {
        "status": "UP",
        "service": "Code Generator",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": SERVICE_VERSION,
        "description": "Code Generator Service - AI Code Generation",
    }


@router.post("/generate")
async def generate_code(
    request: GenerateCodeRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> JSONResponse:
    if not request.text or not request.language.strip():
        return _error(400, "Requirements and language are required")

    logger.info("Code generation requested", language=request.language, service=request.service)
    try:
        generated = await _write_code(
            request.text, request.language, request.service, request.api_key, code_analysis
        )
    except AIServiceError as e:
        logger.error("Code generation failed", error=e.message)
        return _error(503, f"Error: {e.message}")

    return JSONResponse(
        content={
            "status": "success",
            "message": "Code generated successfully",
            "generatedCode": generated,
            "language": request.language,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )


@router.post("/generate/tests")
async def generate_tests(
    request: GenerateTestsRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> JSONResponse:
    if not request.code.strip() or not request.language.strip():
        return _error(400, "Code and language are required")

    logger.info(
        "Test generation requested",
        language=request.language,
        framework=request.framework,
        service=request.service,
    )
    try:
        generated = await _write_code(
            build_test_requirements(request.code, request.language, request.framework),
            request.language,
            request.service,
            request.api_key,
            code_analysis,
        )
    except AIServiceError as e:
        logger.error("Test generation failed", error=e.message)
        return _error(503, f"Error: {e.message}")

    return JSONResponse(
        content={
            "status": "success",
            "message": "Tests generated successfully",
            "generatedTests": generated,
            "language": request.language,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )


__all__ = ["GenerateCodeRequest", "GenerateTestsRequest", "router"]
