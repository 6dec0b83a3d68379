from pydantic import BaseModel

from billsplit.schemas.bill import ItemInput, ItemShareInput, PersonInput, Weight


class PersonItemsInput(BaseModel):
    id: str
    # item ids, or {"id": ...} objects
    items: list[str | dict] | None = None


class SharesFromPeopleRequest(BaseModel):
    items: list[ItemInput]
    people: list[PersonItemsInput]


class ToggleAssignmentRequest(BaseModel):
    item_id: str
    person_id: str
    weight: Weight = 1
    shares: list[ItemShareInput] = []
    # when given, item_id must be one of these
    items: list[ItemInput] | None = None


class AssignAllRequest(BaseModel):
    items: list[ItemInput]
    people: list[PersonInput]
