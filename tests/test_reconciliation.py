"""
Tests for the reconciliation controller.

Flows run against the in-memory store; remote failures are injected with
FailingStore.fail_on.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from conftest import FailingStore, make_bill, make_recurring
from liquid_bills.models.bill import Bill, BillFrequency
from liquid_bills.reconciliation import (
    BillController,
    EditIntent,
    classify_edit,
    commit_with_compensation,
)
from liquid_bills.services.storage import (
    MissingConfigurationError,
    NetworkFailureError,
    NotFoundError,
)
from liquid_bills.services.storage.wire import bill_to_row
from liquid_bills.validation import DuplicateBillError


def occurrence(controller: BillController, due_date: date) -> Bill:
    return next(b for b in controller.bills if b.due_date == due_date)


class TestClassifyEdit:
    """Tests for the edit intent table."""

    def test_one_off_stays_one_off(self):
        bill = make_bill(id="b1")
        assert classify_edit(bill, bill) == EditIntent.PLAIN_UPDATE

    def test_turning_recurrence_on_is_plain_update(self):
        original = make_bill(id="b1")
        edited = make_recurring(id="b1")
        assert classify_edit(original, edited, update_future=True) == EditIntent.PLAIN_UPDATE

    def test_turning_recurrence_off_stops_series(self):
        original = make_recurring(id="b1", series_id="s1")
        edited = make_bill(id="b1")
        assert classify_edit(original, edited) == EditIntent.STOP_SERIES

    def test_recurring_without_update_future(self):
        original = make_recurring(id="b1", series_id="s1")
        assert classify_edit(original, original, update_future=False) == EditIntent.UPDATE_OCCURRENCE

    def test_recurring_with_update_future(self):
        original = make_recurring(id="b1", series_id="s1")
        assert classify_edit(original, original, update_future=True) == EditIntent.REGENERATE_SERIES

    def test_legacy_bill_cannot_regenerate(self):
        original = make_recurring(id="b1")
        assert classify_edit(original, original, update_future=True) == EditIntent.UPDATE_OCCURRENCE

    def test_every_intent_has_a_handler(self, controller):
        assert set(controller._edit_handlers) == set(EditIntent)


class TestCreateBill:
    """Tests for bill and series creation."""

    def test_create_one_off(self, controller, store, mirror):
        created = asyncio.run(controller.create_bill(make_bill()))
        assert len(created) == 1
        assert created[0].id is not None
        assert [r["id"] for r in store.rows] == [created[0].id]
        assert controller.bills == created
        assert mirror.load() == created

    def test_create_quarterly_series(self, controller, store):
        created = asyncio.run(
            controller.create_bill(make_recurring(frequency=BillFrequency.QUARTERLY, is_paid=True))
        )
        assert len(created) == 5
        assert len(store.rows) == 5
        assert len({b.series_id for b in created}) == 1
        assert created[0].is_paid is True
        assert not any(b.is_paid for b in created[1:])
        assert all(b.id for b in created)

    def test_create_ignores_stale_series_id(self, controller):
        created = asyncio.run(controller.create_bill(make_recurring(series_id="old")))
        assert all(b.series_id != "old" for b in created)

    def test_duplicate_in_same_month_rejected(self, controller, store):
        asyncio.run(controller.create_bill(make_bill(name="Netflix", due_date=date(2024, 1, 15))))
        with pytest.raises(DuplicateBillError):
            asyncio.run(controller.create_bill(make_bill(name=" netflix ", due_date=date(2024, 1, 28))))
        assert len(store.rows) == 1

    def test_same_name_next_month_allowed(self, controller, store):
        asyncio.run(controller.create_bill(make_bill(name="Netflix", due_date=date(2024, 1, 15))))
        asyncio.run(controller.create_bill(make_bill(name="Netflix", due_date=date(2024, 2, 1))))
        assert len(store.rows) == 2

    def test_failed_insert_changes_nothing(self, controller, store, mirror):
        store.fail_on.add("insert")
        with pytest.raises(NetworkFailureError):
            asyncio.run(controller.create_bill(make_bill()))
        assert controller.bills == []
        assert mirror.read_blob() is None

    def test_missing_store(self, mirror):
        controller = BillController(store=None, mirror=mirror)
        with pytest.raises(MissingConfigurationError):
            asyncio.run(controller.create_bill(make_bill()))


class TestSaveBill:
    """Tests for edits, including the series-aware ones."""

    def test_plain_update(self, controller, store):
        bill = asyncio.run(controller.create_bill(make_bill()))[0]
        edited = bill.model_copy(update={"amount": Decimal("1300.00")})
        asyncio.run(controller.save_bill(edited))
        assert store.rows[0]["amount"] == Decimal("1300.00")
        assert controller.bills[0].amount == Decimal("1300.00")

    def test_edit_does_not_clash_with_itself(self, controller):
        bill = asyncio.run(controller.create_bill(make_bill(name="Netflix")))[0]
        edited = bill.model_copy(update={"due_date": date(2024, 1, 20)})
        asyncio.run(controller.save_bill(edited))
        assert controller.bills[0].due_date == date(2024, 1, 20)

    def test_edit_into_taken_month_rejected(self, controller):
        asyncio.run(controller.create_bill(make_bill(name="Netflix", due_date=date(2024, 2, 15))))
        bill = asyncio.run(controller.create_bill(make_bill(name="Netflix", due_date=date(2024, 1, 15))))[0]
        with pytest.raises(DuplicateBillError):
            asyncio.run(controller.save_bill(bill.model_copy(update={"due_date": date(2024, 2, 3)})))

    def test_unknown_bill(self, controller):
        with pytest.raises(NotFoundError):
            asyncio.run(controller.save_bill(make_bill(id="missing")))

    def test_unsaved_bill(self, controller):
        with pytest.raises(ValueError):
            asyncio.run(controller.save_bill(make_bill()))

    def test_update_occurrence_leaves_siblings(self, controller, store):
        asyncio.run(controller.create_bill(make_recurring()))
        march = occurrence(controller, date(2024, 3, 15))
        asyncio.run(controller.save_bill(march.model_copy(update={"amount": Decimal("49.00")})))

        amounts = {r["due_date"]: r["amount"] for r in store.rows}
        assert amounts[date(2024, 3, 15)] == Decimal("49.00")
        assert amounts[date(2024, 4, 15)] == Decimal("43.00")
        assert occurrence(controller, date(2024, 3, 15)).series_id == march.series_id

    def test_stop_series_confirmed(self, controller, store):
        asyncio.run(controller.create_bill(make_recurring()))
        march = occurrence(controller, date(2024, 3, 15))
        edited = march.model_copy(update={"is_recurring": False, "frequency": None, "series_id": None})

        asyncio.run(controller.save_bill(edited, confirm_stop_series=True))

        assert [r["due_date"] for r in store.rows] == [
            date(2024, 1, 15),
            date(2024, 2, 15),
            date(2024, 3, 15),
        ]
        stopped = occurrence(controller, date(2024, 3, 15))
        assert stopped.series_id is None
        assert stopped.is_recurring is False
        assert len(controller.bills) == 3

    def test_stop_series_keeps_sibling_on_same_date(self, mirror):
        rows = [
            bill_to_row(make_recurring(series_id="s1", due_date=date(2024, m, 15)))
            for m in range(1, 6)
        ]
        rows.append(bill_to_row(make_recurring(name="Netflix 4K", series_id="s1", due_date=date(2024, 3, 15))))
        store = FailingStore(rows)
        controller = BillController(store=store, mirror=mirror)
        asyncio.run(controller.refresh())

        march = next(b for b in controller.bills if b.due_date == date(2024, 3, 15) and b.name == "Netflix")
        edited = march.model_copy(update={"is_recurring": False, "frequency": None, "series_id": None})
        asyncio.run(controller.save_bill(edited, confirm_stop_series=True))

        remaining = sorted((r["due_date"], r["name"]) for r in store.rows)
        assert remaining == [
            (date(2024, 1, 15), "Netflix"),
            (date(2024, 2, 15), "Netflix"),
            (date(2024, 3, 15), "Netflix"),
            (date(2024, 3, 15), "Netflix 4K"),
        ]
        assert len(controller.bills) == 4

    def test_stop_series_unconfirmed_keeps_siblings(self, controller, store):
        asyncio.run(controller.create_bill(make_recurring()))
        march = occurrence(controller, date(2024, 3, 15))
        edited = march.model_copy(update={"is_recurring": False, "frequency": None, "series_id": None})

        asyncio.run(controller.save_bill(edited, confirm_stop_series=False))

        assert len(store.rows) == 13
        row = next(r for r in store.rows if r["id"] == march.id)
        assert row["series_id"] is None
        assert row["is_recurring"] is False

    def test_stop_legacy_series_matches_name_and_amount(self, mirror):
        rows = [
            bill_to_row(make_bill(name="Woda", amount="80.00", due_date=date(2024, m, 10), is_recurring=True))
            for m in range(1, 7)
        ]
        rows.append(bill_to_row(make_bill(name="Woda", amount="95.00", due_date=date(2024, 5, 20))))
        store = FailingStore(rows)
        controller = BillController(store=store, mirror=mirror)
        asyncio.run(controller.refresh())

        march = occurrence(controller, date(2024, 3, 10))
        edited = march.model_copy(update={"is_recurring": False})
        asyncio.run(controller.save_bill(edited, confirm_stop_series=True))

        remaining = sorted((r["due_date"], r["amount"]) for r in store.rows)
        assert remaining == [
            (date(2024, 1, 10), Decimal("80.00")),
            (date(2024, 2, 10), Decimal("80.00")),
            (date(2024, 3, 10), Decimal("80.00")),
            (date(2024, 5, 20), Decimal("95.00")),
        ]
        assert len(controller.bills) == 4

    def test_regenerate_series_with_new_price(self, controller, store):
        asyncio.run(controller.create_bill(make_recurring()))
        march = occurrence(controller, date(2024, 3, 15))

        asyncio.run(
            controller.save_bill(march.model_copy(update={"amount": Decimal("49.00")}), update_future=True)
        )

        rows = store.rows
        assert len(rows) == 15
        for row in rows:
            if row["due_date"] < date(2024, 3, 15):
                assert row["amount"] == Decimal("43.00")
            else:
                assert row["amount"] == Decimal("49.00")
                assert row["series_id"] == march.series_id
        tail = [r for r in rows if r["due_date"] > date(2024, 3, 15)]
        assert len(tail) == 12
        assert not any(r["is_paid"] for r in tail)
        assert len(controller.bills) == 15

    def test_regenerate_series_with_new_frequency(self, controller, store):
        asyncio.run(controller.create_bill(make_recurring()))
        march = occurrence(controller, date(2024, 3, 15))

        edited = march.model_copy(update={"frequency": BillFrequency.QUARTERLY})
        asyncio.run(controller.save_bill(edited, update_future=True))

        later = sorted(r["due_date"] for r in store.rows if r["due_date"] > date(2024, 3, 15))
        assert later == [
            date(2024, 6, 15),
            date(2024, 9, 15),
            date(2024, 12, 15),
            date(2025, 3, 15),
        ]

    def test_regenerate_failure_leaves_mirror_untouched(self, controller, store, mirror):
        asyncio.run(controller.create_bill(make_recurring()))
        before = mirror.read_blob()
        march = occurrence(controller, date(2024, 3, 15))

        store.fail_on.add("delete_where")
        with pytest.raises(NetworkFailureError):
            asyncio.run(
                controller.save_bill(march.model_copy(update={"amount": Decimal("49.00")}), update_future=True)
            )
        assert mirror.read_blob() == before

    def test_failed_refresh_after_regenerate_is_reported(self, controller, store):
        asyncio.run(controller.create_bill(make_recurring()))
        march = occurrence(controller, date(2024, 3, 15))

        store.fail_on.add("select_all")
        asyncio.run(
            controller.save_bill(march.model_copy(update={"amount": Decimal("49.00")}), update_future=True)
        )

        assert controller.last_sync is not None
        assert controller.last_sync.success is False
        assert controller.last_sync.error_kind == "network"


class TestOptimisticOperations:
    """Tests for toggle-paid and delete with rollback."""

    def test_toggle_paid(self, controller, store):
        bill = asyncio.run(controller.create_bill(make_bill()))[0]
        asyncio.run(controller.toggle_paid(bill.id))
        assert store.rows[0]["is_paid"] is True
        assert controller.bills[0].is_paid is True

    def test_toggle_failure_restores_blob(self, controller, store, mirror):
        bill = asyncio.run(controller.create_bill(make_bill()))[0]
        before = mirror.read_blob()

        store.fail_on.add("update")
        with pytest.raises(NetworkFailureError):
            asyncio.run(controller.toggle_paid(bill.id))

        assert mirror.read_blob() == before
        assert controller.bills[0].is_paid is False

    def test_delete_removes_single_occurrence(self, controller, store):
        asyncio.run(controller.create_bill(make_recurring()))
        march = occurrence(controller, date(2024, 3, 15))
        asyncio.run(controller.delete_bill(march.id))
        assert len(store.rows) == 12
        assert controller.find(march.id) is None

    def test_delete_failure_restores_blob(self, controller, store, mirror):
        bill = asyncio.run(controller.create_bill(make_bill()))[0]
        before = mirror.read_blob()

        store.fail_on.add("delete")
        with pytest.raises(NetworkFailureError):
            asyncio.run(controller.delete_bill(bill.id))

        assert mirror.read_blob() == before
        assert controller.find(bill.id) is not None


class TestCommitWithCompensation:
    """Tests for the optimistic helper."""

    def test_success_returns_remote_result(self):
        calls = []

        async def remote():
            return "ok"

        result = asyncio.run(
            commit_with_compensation(lambda: calls.append("apply"), remote, lambda: calls.append("undo"))
        )
        assert result == "ok"
        assert calls == ["apply"]

    def test_failure_compensates_and_reraises(self):
        calls = []

        async def remote():
            raise NetworkFailureError("down")

        with pytest.raises(NetworkFailureError):
            asyncio.run(
                commit_with_compensation(lambda: calls.append("apply"), remote, lambda: calls.append("undo"))
            )
        assert calls == ["apply", "undo"]
