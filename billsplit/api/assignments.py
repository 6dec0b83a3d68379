from fastapi import APIRouter, HTTPException

from billsplit.schemas.assignment import AssignAllRequest, SharesFromPeopleRequest, ToggleAssignmentRequest
from billsplit.schemas.bill import ItemShareInput
from billsplit.services.assignment_service import (
    AssignmentState, assign_all_to_all, build_shares_from_people_items,
)

router = APIRouter(tags=["assignments"])


@router.post("/api/assignments/from-people", response_model=list[ItemShareInput])
async def shares_from_people(body: SharesFromPeopleRequest):
    return build_shares_from_people_items(
        [item.to_model() for item in body.items],
        [p.model_dump() for p in body.people],
    )


@router.post("/api/assignments/toggle", response_model=list[ItemShareInput])
async def toggle_assignment(body: ToggleAssignmentRequest):
    """Toggle one person on one item of a submitted share snapshot; returns the new snapshot."""
    if body.items is not None and body.item_id not in {item.id for item in body.items}:
        raise HTTPException(status_code=404, detail="Item not found")
    state = AssignmentState.from_shares(share.to_model() for share in body.shares)
    return state.toggle(body.item_id, body.person_id, body.weight).shares()


@router.post("/api/assignments/assign-all", response_model=list[ItemShareInput])
async def assign_all_items(body: AssignAllRequest):
    return assign_all_to_all(
        [item.to_model() for item in body.items],
        [person.to_model() for person in body.people],
    ).shares()
