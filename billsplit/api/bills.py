import logging

from fastapi import APIRouter

from billsplit.core.config import settings
from billsplit.schemas.bill import (
    AssignedLineResponse, AssignedMapRequest, BillTotalsResponse, ComputeTotalsRequest,
    TotalsValidationResponse,
)
from billsplit.services.totals_service import compute_totals, derive_assigned_map, validate_bill_totals

router = APIRouter(tags=["bills"])
logger = logging.getLogger(__name__)


@router.post("/api/bills/totals", response_model=BillTotalsResponse)
async def bill_totals(body: ComputeTotalsRequest):
    tax_mode = body.tax_mode or settings.default_tax_mode
    tip_mode = body.tip_mode or settings.default_tip_mode
    include_zero_people = (
        settings.include_zero_people if body.include_zero_people is None else body.include_zero_people
    )
    return compute_totals(
        [item.to_model() for item in body.items],
        [share.to_model() for share in body.shares],
        [person.to_model() for person in body.people],
        body.tax,
        body.tip,
        tax_mode,
        tip_mode,
        include_zero_people,
        discount=body.discount,
        service_fee=body.service_fee,
    )


@router.post("/api/bills/assigned-map", response_model=dict[str, list[AssignedLineResponse]])
async def assigned_map(body: AssignedMapRequest):
    people = [p.to_model() for p in body.people] if body.people is not None else None
    return derive_assigned_map(
        [item.to_model() for item in body.items],
        [share.to_model() for share in body.shares],
        people,
    )


@router.post("/api/bills/validate", response_model=TotalsValidationResponse)
async def validate_totals(body: BillTotalsResponse):
    """Check totals computed elsewhere (e.g. cached by a client) before displaying them."""
    result = validate_bill_totals(body.to_model())
    if not result.valid:
        logger.info("Rejected bill totals: %s", result.error)
    return result
