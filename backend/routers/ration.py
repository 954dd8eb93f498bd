from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.dependencies import get_ration_constants, new_audit_id
from app.models import RationAuditRequest
from core.ration.audit import run
from core.ration.exceptions import RationCalculationError
from core.ration.report_generation import feed_records, result_to_dict, step_records, to_report
from middleware.error_handlers import raise_user_friendly_http_exception
from middleware.logging_config import get_logger

# Initialize router and logger
router = APIRouter(prefix="/ration", tags=["Ration Audit"])
ration_logger = get_logger("router.ration")


def _run_audit(request: RationAuditRequest, constants, audit_id: str):
    try:
        return run(request.to_inputs(), constants)
    except RationCalculationError as e:
        raise_user_friendly_http_exception(e, audit_id, ration_logger)


@router.post("/audit")
async def audit_ration(request: RationAuditRequest, constants=Depends(get_ration_constants)):
    """
    Audit a ration for one animal profile.

    Returns the full result tree (requirements, feed contributions, supply,
    intake capacity, balances and summary), the flat step table and the
    per-feed table.
    """
    audit_id = new_audit_id()
    ration_logger.info(
        f"Ration audit {audit_id} requested | Profile: {request.animal_profile.name} | "
        f"Feeds: {len(request.feeds)} | Grazing: {request.is_grazing}"
    )
    result = _run_audit(request, constants, audit_id)
    return {
        "status": "OK",
        "audit_id": audit_id,
        "result": result_to_dict(result),
        "steps": step_records(result),
        "feeds": feed_records(result),
    }


@router.post("/audit/report", response_class=PlainTextResponse)
async def audit_ration_report(request: RationAuditRequest, constants=Depends(get_ration_constants)):
    """Audit a ration and return the plain-text audit report."""
    audit_id = new_audit_id()
    ration_logger.info(f"Ration audit report {audit_id} requested | Profile: {request.animal_profile.name}")
    result = _run_audit(request, constants, audit_id)
    return PlainTextResponse(to_report(result), headers={"X-Audit-Id": audit_id})


@router.get("/constants")
async def get_constants(constants=Depends(get_ration_constants)):
    """Active CVB constant table."""
    return constants.to_dict()
