"""Item naming rules applied when routes are authored or imported."""

from dataclasses import replace

from ..errors import MissingItemName
from .models import Item, ItemDisplayName, ItemType, Route

ITEM_TYPES_REQUIRING_NAME = frozenset({
    ItemType.EVENT,
    ItemType.TASK,
    ItemType.HARVESTABLE,
    ItemType.CONSUMABLE,
})

ITEM_TYPES_WITH_DEFAULT_NAME = frozenset({
    ItemType.BOBBLEHEAD,
    ItemType.MAGAZINE,
})


def requires_custom_name(item_type: ItemType) -> bool:
    return item_type in ITEM_TYPES_REQUIRING_NAME


def uses_default_name(item_type: ItemType) -> bool:
    return item_type in ITEM_TYPES_WITH_DEFAULT_NAME


def item_name_or_default(item_name: str, item_type: ItemType) -> str:
    """
    Resolve the display name for an item.

    Types with a default name always use the type; other types fall back to
    the type only when no name was given.
    """
    if uses_default_name(item_type):
        return item_type.value
    return item_name.strip() or item_type.value


def validate_item_name(item_name: str, item_type: ItemType) -> bool:
    if requires_custom_name(item_type):
        return bool(item_name.strip())
    return True


def normalize_route(route: Route) -> Route:
    """
    Validate every item name in a route and apply type defaults.

    Raises:
        MissingItemName: If an item whose type needs a name has none
    """
    stops = []
    for stop in route.stops:
        items: list[Item] = []
        for item in stop.items:
            if not validate_item_name(item.name, item.type):
                raise MissingItemName(
                    f"{item.type.value} items need a name",
                    item_type=item.type.value,
                    context={"route_id": route.id, "stop_id": stop.id, "item_id": item.id}
                )
            name = item_name_or_default(item.name, item.type)
            items.append(replace(item, name=ItemDisplayName(name)))
        stops.append(replace(stop, items=tuple(items)))
    return replace(route, stops=tuple(stops))
