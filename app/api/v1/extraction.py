from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field

from app.ai.factory import get_completion_client
from app.ai.types import CompletionError, ExtractionFunction
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import check_api_key
from app.extraction.completion import build_extraction_functions
from app.extraction.orchestrator import OrchestrationConfig, orchestrate_extraction
from app.observability.service import ExtractionObservability, SessionNotFoundError
from app.observability.store import get_extraction_store
from app.schemas.observability import ExtractionReport
from app.schemas.orchestration import OrchestrationResult

logger = logging.getLogger(__name__)

router = APIRouter()


class ExtractionRunRequest(BaseModel):
    resume_text: str = Field(min_length=1)
    vault_id: str = Field(min_length=1, max_length=200)
    user_id: str = Field(min_length=1, max_length=200)
    target_roles: list[str] = Field(default_factory=list, max_length=10)
    target_industries: list[str] = Field(default_factory=list, max_length=10)


def get_observability() -> ExtractionObservability:
    return ExtractionObservability(get_extraction_store())


def get_extraction_functions() -> dict[str, ExtractionFunction]:
    try:
        client = get_completion_client()
    except (CompletionError, ValueError) as exc:
        logger.warning(json.dumps({"event": "completion_client_unavailable", "error": str(exc)}))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Extraction service is not configured.",
        ) from exc
    return build_extraction_functions(client)


@router.post("/extraction/run", response_model=OrchestrationResult)
@rate_limit()
def run_extraction(
    request: Request,
    payload: ExtractionRunRequest,
    extraction_functions: dict[str, ExtractionFunction] = Depends(get_extraction_functions),
    observability: ExtractionObservability = Depends(get_observability),
):
    _ = request
    if len(payload.resume_text) > settings.max_resume_chars:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Resume text exceeds {settings.max_resume_chars} characters.",
        )

    config = OrchestrationConfig(
        resume_text=payload.resume_text,
        vault_id=payload.vault_id,
        user_id=payload.user_id,
        target_roles=payload.target_roles,
        target_industries=payload.target_industries,
        extraction_functions=extraction_functions,
    )
    try:
        return orchestrate_extraction(config, observability=observability)
    except Exception as exc:
        logger.exception(json.dumps({"event": "extraction_run_failed", "vault_id": payload.vault_id}))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Extraction failed.",
        ) from exc


@router.get("/extraction/sessions/{session_id}/report", response_model=ExtractionReport)
@rate_limit(settings.report_rate_limit)
def extraction_report(
    request: Request,
    session_id: str,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    observability: ExtractionObservability = Depends(get_observability),
):
    _ = request
    check_api_key(x_api_key)
    try:
        return observability.generate_report(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
