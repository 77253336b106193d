"""Tests for item naming rules."""

import pytest

from farmroute.catalog.models import Item, ItemType, Route, Stop
from farmroute.catalog.naming import (
    item_name_or_default,
    normalize_route,
    requires_custom_name,
    uses_default_name,
    validate_item_name,
)
from farmroute.errors import MissingItemName


class TestNamingRules:
    """Test per-type naming rules."""

    @pytest.mark.parametrize("item_type", [
        ItemType.EVENT, ItemType.TASK, ItemType.HARVESTABLE, ItemType.CONSUMABLE,
    ])
    def test_types_requiring_name(self, item_type):
        """Test types that need a custom name."""
        assert requires_custom_name(item_type)
        assert not validate_item_name("   ", item_type)
        assert validate_item_name("Acid", item_type)

    @pytest.mark.parametrize("item_type", [ItemType.BOBBLEHEAD, ItemType.MAGAZINE])
    def test_types_with_default_name(self, item_type):
        """Test types that always use their type as name."""
        assert uses_default_name(item_type)
        assert item_name_or_default("anything", item_type) == item_type.value
        assert validate_item_name("", item_type)

    def test_name_is_trimmed(self):
        """Test whitespace is stripped from custom names."""
        assert item_name_or_default("  Acid  ", ItemType.HARVESTABLE) == "Acid"


class TestNormalizeRoute:
    """Test whole-route normalization."""

    def test_applies_default_names(self):
        """Test bobbleheads and magazines are renamed to their type."""
        route = Route(id="r", name="R", stops=(
            Stop(id="s", name="S", items=(
                Item(id="b", name="", type=ItemType.BOBBLEHEAD),
                Item(id="m", name="Tesla Science", type=ItemType.MAGAZINE),
                Item(id="h", name=" Lead ", type=ItemType.HARVESTABLE),
            )),
        ))

        normalized = normalize_route(route)

        assert [item.name for item in normalized.stops[0].items] == [
            "Bobblehead", "Magazine", "Lead",
        ]

    def test_missing_name_raises(self):
        """Test a nameless harvestable is rejected with context."""
        route = Route(id="r", name="R", stops=(
            Stop(id="s", name="S", items=(Item(id="h", name="", type=ItemType.HARVESTABLE),)),
        ))

        with pytest.raises(MissingItemName) as exc_info:
            normalize_route(route)

        assert exc_info.value.item_type == "Harvestable"
        assert exc_info.value.context["item_id"] == "h"
