"""Name → instances index over the harvestable items of a scope."""

from collections.abc import Iterable, Mapping
from typing import Optional

from ..catalog.models import Item, ItemDisplayName, ItemIdentity, Route, Stop


class NameIndex:
    """
    Harvestable items grouped by display name, in first-seen order.

    Built on demand for a single stop or for the whole route; never cached
    across scopes.
    """

    def __init__(self, items: Iterable[Item]):
        self._by_name: dict[ItemDisplayName, list[Item]] = {}
        for item in items:
            if item.is_harvestable:
                self._by_name.setdefault(item.name, []).append(item)

    @classmethod
    def for_stop(cls, stop: Stop) -> "NameIndex":
        return cls(stop.items)

    @classmethod
    def for_route(cls, route: Route) -> "NameIndex":
        return cls(route.all_items())

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    def names(self) -> list[ItemDisplayName]:
        return list(self._by_name)

    def instances(self, name: str) -> list[Item]:
        return list(self._by_name.get(ItemDisplayName(name), []))

    def identities(self, name: str) -> list[ItemIdentity]:
        return [item.id for item in self._by_name.get(ItemDisplayName(name), [])]

    def groups(self) -> dict[ItemDisplayName, list[Item]]:
        return {name: list(items) for name, items in self._by_name.items()}

    def aggregate(
        self,
        by_identity: Optional[Mapping[ItemIdentity, float]]
    ) -> dict[ItemDisplayName, float]:
        """
        Sum identity-keyed values back to name level.

        Names none of whose instances has a value are omitted.
        """
        totals: dict[ItemDisplayName, float] = {}
        if not by_identity:
            return totals
        for name, items in self._by_name.items():
            present = [by_identity[item.id] for item in items if item.id in by_identity]
            if present:
                totals[name] = sum(present)
        return totals
