import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from billsplit.models.bill import Item, ItemShare, Person
from billsplit.utils.currency_utils import to_decimal

logger = logging.getLogger(__name__)

ONE = Decimal("1")


@dataclass(frozen=True)
class AssignmentState:
    """
    Immutable item_id -> ((person_id, weight), ...) mapping.
    Every change returns a new state; the engine is handed shares() snapshots.
    """
    _weights: Mapping[str, tuple[tuple[str, Decimal], ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __hash__(self) -> int:
        return hash(frozenset(self._weights.items()))

    @classmethod
    def from_shares(cls, shares: Iterable[ItemShare]) -> "AssignmentState":
        weights: dict[str, dict[str, Decimal]] = defaultdict(dict)
        for share in shares:
            # last write wins for a repeated (item, person) pair
            weights[share.item_id][share.person_id] = to_decimal(share.weight)
        return cls._build({item_id: tuple(pairs.items()) for item_id, pairs in weights.items()})

    @classmethod
    def _build(cls, weights: dict[str, tuple[tuple[str, Decimal], ...]]) -> "AssignmentState":
        return cls(MappingProxyType({k: v for k, v in weights.items() if v}))

    def _replace(self, item_id: str, pairs: tuple[tuple[str, Decimal], ...]) -> "AssignmentState":
        weights = dict(self._weights)
        weights[item_id] = pairs
        return self._build(weights)

    def weights_for(self, item_id: str) -> dict[str, Decimal]:
        return dict(self._weights.get(item_id, ()))

    def is_assigned(self, item_id: str, person_id: str) -> bool:
        return person_id in self.weights_for(item_id)

    def item_ids(self) -> list[str]:
        return list(self._weights)

    def assign(self, item_id: str, person_id: str, weight=ONE) -> "AssignmentState":
        pairs = self.weights_for(item_id)
        pairs[person_id] = to_decimal(weight)
        return self._replace(item_id, tuple(pairs.items()))

    def unassign(self, item_id: str, person_id: str) -> "AssignmentState":
        pairs = self.weights_for(item_id)
        if person_id not in pairs:
            return self
        del pairs[person_id]
        return self._replace(item_id, tuple(pairs.items()))

    def toggle(self, item_id: str, person_id: str, weight=ONE) -> "AssignmentState":
        if self.is_assigned(item_id, person_id):
            return self.unassign(item_id, person_id)
        return self.assign(item_id, person_id, weight)

    def split_evenly(self, item_id: str, person_ids: Sequence[str]) -> "AssignmentState":
        """Replace the item's shares with an equal weight for each listed person."""
        unique = list(dict.fromkeys(person_ids))
        return self._replace(item_id, tuple((pid, ONE) for pid in unique))

    def remove_person(self, person_id: str) -> "AssignmentState":
        return self._build({
            item_id: tuple((pid, w) for pid, w in pairs if pid != person_id)
            for item_id, pairs in self._weights.items()
        })

    def remove_item(self, item_id: str) -> "AssignmentState":
        weights = dict(self._weights)
        weights.pop(item_id, None)
        return self._build(weights)

    def shares(self) -> list[ItemShare]:
        return [
            ItemShare(item_id=item_id, person_id=person_id, weight=weight)
            for item_id, pairs in self._weights.items()
            for person_id, weight in pairs
        ]

    def __len__(self) -> int:
        return sum(len(pairs) for pairs in self._weights.values())


def bulk_assign(state: AssignmentState, assignments: list[dict]) -> AssignmentState:
    """
    Replace the shares of every listed item.
    Each assignment: {item_id, person_ids} for an even split, or
    {item_id, weights: {person_id: weight}} for a weighted one.
    An empty person list clears the item.
    """
    for a in assignments:
        item_id = a["item_id"]
        if "weights" in a:
            state = state.remove_item(item_id)
            for person_id, weight in a["weights"].items():
                state = state.assign(item_id, person_id, weight)
        else:
            state = state.split_evenly(item_id, a.get("person_ids") or [])
    return state


def assign_all_to_all(items: Sequence[Item], people: Sequence[Person]) -> AssignmentState:
    """Assign every item to every person with equal weight."""
    if not items or not people:
        return AssignmentState()
    person_ids = [p.id for p in people]
    state = AssignmentState()
    for item in items:
        state = state.split_evenly(item.id, person_ids)
    return state


def _item_ref(ref) -> str | None:
    if isinstance(ref, Mapping):
        ref = ref.get("id")
    return str(ref) if ref is not None else None


def build_shares_from_people_items(
    items: Sequence[Item],
    people_items: Sequence[Mapping],
) -> list[ItemShare]:
    """
    Convert a "person -> item ids" model into shares.
    Each person entry is {"id": ..., "items": [...]} where items are ids or
    {"id": ...} mappings. An item claimed by n people gets weight 1/n each.
    Unknown items and people without items are skipped.
    """
    known_items = {item.id for item in items}
    claims: dict[str, list[str]] = defaultdict(list)
    for person in people_items:
        for ref in person.get("items") or []:
            item_id = _item_ref(ref)
            if item_id not in known_items:
                continue
            if person["id"] not in claims[item_id]:
                claims[item_id].append(person["id"])

    shares = []
    seen: set[tuple[str, str]] = set()
    for person in people_items:
        for ref in person.get("items") or []:
            item_id = _item_ref(ref)
            if item_id not in claims or (item_id, person["id"]) in seen:
                continue
            seen.add((item_id, person["id"]))
            shares.append(ItemShare(
                item_id=item_id,
                person_id=person["id"],
                weight=ONE / len(claims[item_id]),
            ))
    logger.debug("Built %d share(s) from %d person entries", len(shares), len(people_items))
    return shares
