"""Tests for the activity log."""

from printshop.activity import MAX_ENTRIES, ActionType, ActivityLog


class TestActivityLog:
    def test_newest_first(self):
        log = ActivityLog()
        log.record(ActionType.ADD_TO_CART, product_id="a")
        log.record(ActionType.REMOVE_FROM_CART, product_id="a")

        entries = log.entries()

        assert [e.action for e in entries] == [ActionType.REMOVE_FROM_CART, ActionType.ADD_TO_CART]
        assert entries[0].data == {"product_id": "a"}
        assert entries[0].timestamp.endswith("Z")

    def test_bounded(self):
        log = ActivityLog()
        for i in range(MAX_ENTRIES + 20):
            log.record(ActionType.ADD_TO_CART, n=i)

        assert len(log) == MAX_ENTRIES
        assert log.entries()[0].data["n"] == MAX_ENTRIES + 19
        assert log.entries()[-1].data["n"] == 20

    def test_by_action_and_recent(self):
        log = ActivityLog(max_entries=10)
        log.record(ActionType.CHECKOUT_START)
        log.record(ActionType.CHECKOUT_COMPLETE, order_id="o1")
        log.record(ActionType.CHECKOUT_START)

        assert len(log.by_action(ActionType.CHECKOUT_START)) == 2
        assert [e.action for e in log.recent(1)] == [ActionType.CHECKOUT_START]
        assert log.recent(0) == []

    def test_clear(self):
        log = ActivityLog()
        log.record(ActionType.ADMIN_ADD_PRODUCT, product_id="p")

        log.clear()

        assert log.entries() == []

    def test_to_dict(self):
        entry = ActivityLog().record(ActionType.ADMIN_DELETE_PRODUCT, product_id="p")

        data = entry.to_dict()

        assert data["action"] == "ADMIN_DELETE_PRODUCT"
        assert data["data"] == {"product_id": "p"}
