"""Tests for route catalog value types."""

import pytest

from farmroute.catalog.models import Item, ItemType, Route, Stop
from farmroute.errors import DataFormatError


class TestItem:
    """Test Item codec and classification."""

    def test_from_dict_reads_all_fields(self):
        """Test decoding a stored item."""
        item = Item.from_dict({
            "id": "i1",
            "type": "Harvestable",
            "name": "Acid",
            "quantity": 3,
            "description": "Green puddle",
        })

        assert item.id == "i1"
        assert item.type == ItemType.HARVESTABLE
        assert item.name == "Acid"
        assert item.quantity == 3
        assert item.is_harvestable

    def test_to_dict_round_trips(self):
        """Test that to_dict output decodes back to an equal item."""
        item = Item(id="i2", name="Stimpak", type=ItemType.CONSUMABLE, quantity=2)

        assert Item.from_dict(item.to_dict()) == item

    def test_unknown_type_rejected(self):
        """Test that an unknown item type raises DataFormatError."""
        with pytest.raises(DataFormatError) as exc_info:
            Item.from_dict({"id": "i1", "type": "Weapon", "name": "Laser"})

        assert exc_info.value.field == "item.type"

    def test_missing_id_rejected(self):
        """Test that an item without an id is rejected."""
        with pytest.raises(DataFormatError):
            Item.from_dict({"type": "Harvestable", "name": "Acid"})

    def test_boolean_quantity_rejected(self):
        """Test that a boolean quantity is not accepted as a number."""
        with pytest.raises(DataFormatError):
            Item.from_dict({"id": "i1", "type": "Harvestable", "name": "Acid", "quantity": True})


class TestStop:
    """Test Stop helpers."""

    def test_requests_inventory_needs_flag_and_harvestables(self, acid_route):
        """Test that only collecting stops with harvestables request inventory."""
        stop_a, stop_b = acid_route.stops

        assert stop_a.requests_inventory
        assert not stop_b.requests_inventory

    def test_collect_flag_without_harvestables(self):
        """Test a collecting stop with nothing to count."""
        stop = Stop(
            id="s",
            name="Empty",
            items=(Item(id="b", name="Bobblehead", type=ItemType.BOBBLEHEAD),),
            collect_data=True,
        )

        assert stop.harvestables == ()
        assert not stop.requests_inventory

    def test_from_dict_reads_collect_data(self):
        """Test the camelCase collectData key."""
        stop = Stop.from_dict({"id": "s1", "name": "Farm", "items": [], "collectData": True})

        assert stop.collect_data is True

    def test_items_must_be_list(self):
        """Test that a non-list items value is rejected."""
        with pytest.raises(DataFormatError):
            Stop.from_dict({"id": "s1", "name": "Farm", "items": "nope"})


class TestRoute:
    """Test Route helpers and codec."""

    def test_item_ids_in_route_order(self, acid_route):
        """Test item ids follow stop then item order."""
        assert acid_route.item_ids() == ["a1", "a2", "b1"]

    def test_harvestables(self, acid_route, plain_route):
        """Test harvestable detection at route level."""
        assert [item.id for item in acid_route.harvestables()] == ["a1", "a2"]
        assert acid_route.has_harvestables
        assert not plain_route.has_harvestables

    def test_find_stop_and_index(self, acid_route):
        """Test looking up stops by id."""
        assert acid_route.find_stop("stop-b").name == "Vault Door"
        assert acid_route.stop_index("stop-b") == 1
        assert acid_route.find_stop("missing") is None
        assert acid_route.stop_index("missing") is None

    def test_with_completed_run_returns_new_route(self, acid_route):
        """Test the run counter increments on a copy."""
        updated = acid_route.with_completed_run()

        assert updated.completed_runs == 1
        assert acid_route.completed_runs == 0

    def test_round_trip_uses_camel_case_keys(self, auto_route):
        """Test the stored route shape."""
        data = auto_route.to_dict()

        assert data["autoInventoryChecks"] is True
        assert data["completedRuns"] == 0
        assert data["stops"][0]["collectData"] is True
        assert Route.from_dict(data) == auto_route

    def test_non_object_rejected(self):
        """Test that a route entry must be an object."""
        with pytest.raises(DataFormatError):
            Route.from_dict(["not", "a", "route"])

    @pytest.mark.parametrize("runs", ["abc", -1, 2.5, True])
    def test_bad_completed_runs_rejected(self, runs):
        """Test a malformed run counter is a format error."""
        with pytest.raises(DataFormatError) as exc_info:
            Route.from_dict({"id": "r", "stops": [], "completedRuns": runs})

        assert exc_info.value.field == "route.completedRuns"

    def test_whole_float_completed_runs_accepted(self):
        """Test a whole-number float counter decodes as an int."""
        route = Route.from_dict({"id": "r", "stops": [], "completedRuns": 4.0})

        assert route.completed_runs == 4

    @pytest.mark.parametrize("flag", ["false", 0, "yes"])
    def test_non_boolean_flags_rejected(self, flag):
        """Test route and stop flags must be real booleans."""
        with pytest.raises(DataFormatError):
            Route.from_dict({"id": "r", "stops": [], "autoInventoryChecks": flag})
        with pytest.raises(DataFormatError):
            Stop.from_dict({"id": "s", "items": [], "collectData": flag})

    def test_missing_flags_default_off(self):
        """Test absent flags decode as False."""
        route = Route.from_dict({"id": "r", "stops": [{"id": "s", "items": []}]})

        assert route.auto_inventory_checks is False
        assert route.stops[0].collect_data is False
