from __future__ import annotations

import time
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from adapters.html.document import HtmlDocumentAdapterError, load_page
from common.audit_engine import AuditEngine, Impact, ResultType, create_engine
from common.audit_engine.catalog import build_catalog, load_rule_modules
from common.audit_engine.config import EngineOptions, options_from_env, rule_modules_from_env
from common.audit_engine.models import ENGINE_VERSION
from common.audit_engine.report import utc_timestamp


router = APIRouter(prefix="/audit", tags=["audit"])

_ENGINE: Optional[AuditEngine] = None


def get_engine() -> AuditEngine:
    global _ENGINE
    if _ENGINE is None:
        load_rule_modules(rule_modules_from_env())
        _ENGINE = create_engine(options_from_env(silent=True))
    return _ENGINE


class ScanRequest(BaseModel):
    html: str
    url: str = ""
    options: dict[str, Any] = Field(default_factory=dict)


@router.get("/health")
def audit_health():
    return {"status": "healthy", "version": ENGINE_VERSION, "timestamp": utc_timestamp()}


@router.get("/rules")
def list_rules(engine: AuditEngine = Depends(get_engine)):
    return [entry.model_dump(mode="json") for entry in build_catalog(engine.registry)]


@router.get("/rules/{rule_id}")
def rule_details(rule_id: str, engine: AuditEngine = Depends(get_engine)):
    for entry in build_catalog(engine.registry):
        if entry.rule_id == rule_id:
            return entry.model_dump(mode="json")
    raise HTTPException(status_code=404, detail=f"Unknown rule: {rule_id}")


@router.post("/scan")
async def scan(body: ScanRequest, engine: AuditEngine = Depends(get_engine)):
    try:
        options = EngineOptions.model_validate(body.options)
    except PydanticValidationError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid options: {exc.error_count()} error(s)") from exc
    try:
        page = load_page(body.html, url=body.url)
    except HtmlDocumentAdapterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    started = time.perf_counter()
    report = await engine.run(page, options)
    duration_ms = int((time.perf_counter() - started) * 1000)

    violations = report.bucket(ResultType.VIOLATIONS)
    summary = {"totalIssues": len(violations)}
    for impact in Impact:
        summary[impact.value] = sum(1 for v in violations if v.impact == impact)

    return {
        "url": body.url,
        "timestamp": report.timestamp,
        "scanDuration": f"{duration_ms}ms",
        "summary": summary,
        "report": report.to_wire(),
    }
