"""
Tests for the booking lifecycle engine
"""

import threading
from types import SimpleNamespace

import pytest

from swiftwash.domain.bookings.lifecycle import (
    BOOKING_TRANSITIONS,
    LifecycleEngine,
    can_transition,
    compute_worker_earnings,
)
from swiftwash.domain.bookings.repository import BookingRepository
from swiftwash.domain.enums import BookingStatus, TERMINAL_STATUSES
from swiftwash.domain.errors import InvalidTransition, NotFound, StaleState, ValidationError
from swiftwash.models import Booking, BookingModification, Worker, WorkerDailyEarning


def _modifications(db, booking_id):
    return (
        db.query(BookingModification)
        .filter(BookingModification.booking_id == booking_id)
        .order_by(BookingModification.id)
        .all()
    )


@pytest.mark.unit
class TestTransitionTable:
    def test_terminal_statuses_have_no_exits(self):
        for status in TERMINAL_STATUSES:
            assert BOOKING_TRANSITIONS[status] == frozenset()

    def test_happy_path_edges(self):
        assert can_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
        assert can_transition(BookingStatus.CONFIRMED, BookingStatus.STARTED_CLEANING)
        assert can_transition(BookingStatus.STARTED_CLEANING, BookingStatus.DONE)
        assert can_transition(BookingStatus.DONE, BookingStatus.DELIVERED)

    def test_no_skipping_ahead(self):
        assert not can_transition(BookingStatus.PENDING, BookingStatus.DONE)
        assert not can_transition(BookingStatus.STARTED_CLEANING, BookingStatus.CANCELLED)

    @pytest.mark.parametrize("price, expected", [(200, 80), (1500, 600), (250, 100), (3, 1), (1, 0)])
    def test_worker_earnings_rounding(self, price, expected):
        assert compute_worker_earnings(price) == expected


class TestLifecycleEngine:
    def test_full_lifecycle_credits_worker_once(self, db_session, worker, make_booking):
        booking = make_booking(vehicle_class="suv", service_type="full_service", assigned_worker_id=worker.id)
        engine = LifecycleEngine(db_session)

        for status in ("confirmed", "started_cleaning"):
            result = engine.transition(booking.id, status, "admin")
            assert result.changed

        done = engine.transition(booking.id, "done", "worker")
        assert done.earnings_credited == 600
        assert done.booking.completed_at is not None
        assert done.booking.delivered_at is None

        delivered = engine.transition(booking.id, "delivered", "worker")
        assert delivered.booking.status == "delivered"
        assert delivered.booking.delivered_at is not None
        assert delivered.earnings_credited == 0

        db_session.expire_all()
        refreshed_worker = db_session.get(Worker, worker.id)
        assert refreshed_worker.total_earnings == 600

        ledger = db_session.query(WorkerDailyEarning).filter_by(worker_id=worker.id).all()
        assert len(ledger) == 1
        assert ledger[0].amount == 600
        assert ledger[0].tasks_completed == 1

        entries = _modifications(db_session, booking.id)
        assert [(m.old_value, m.new_value) for m in entries] == [
            ("pending", "confirmed"),
            ("confirmed", "started_cleaning"),
            ("started_cleaning", "done"),
            ("done", "delivered"),
        ]
        assert [m.actor for m in entries] == ["admin", "admin", "worker", "worker"]

    def test_repeating_current_status_is_noop(self, db_session, worker, make_booking):
        booking = make_booking(status="started_cleaning", assigned_worker_id=worker.id)
        engine = LifecycleEngine(db_session)

        first = engine.transition(booking.id, "done", "worker")
        second = engine.transition(booking.id, "done", "worker")

        assert first.changed is True
        assert second.changed is False
        assert second.previous_status == "done"
        assert second.notification is None

        db_session.expire_all()
        assert db_session.get(Worker, worker.id).total_earnings == 80
        assert len(_modifications(db_session, booking.id)) == 1

    def test_two_bookings_same_day_share_ledger_row(self, db_session, worker, make_booking):
        engine = LifecycleEngine(db_session)
        first = make_booking(status="started_cleaning", assigned_worker_id=worker.id)
        second = make_booking(
            status="started_cleaning", vehicle_class="truck", service_type="body_wash", assigned_worker_id=worker.id
        )

        engine.transition(first.id, "done", "worker")
        engine.transition(second.id, "done", "worker")

        db_session.expire_all()
        ledger = db_session.query(WorkerDailyEarning).filter_by(worker_id=worker.id).one()
        assert ledger.tasks_completed == 2
        assert ledger.amount == 80 + 160
        assert db_session.get(Worker, worker.id).total_earnings == 240

    def test_done_without_worker_credits_nothing(self, db_session, make_booking):
        booking = make_booking(status="started_cleaning")
        result = LifecycleEngine(db_session).transition(booking.id, "done", "admin")
        assert result.changed
        assert result.earnings_credited == 0

    def test_illegal_transition(self, db_session, make_booking):
        booking = make_booking()
        with pytest.raises(InvalidTransition) as exc_info:
            LifecycleEngine(db_session).transition(booking.id, "done", "admin")
        assert exc_info.value.details["currentStatus"] == "pending"
        assert db_session.get(Booking, booking.id).status == "pending"

    def test_terminal_booking_cannot_change(self, db_session, make_booking):
        booking = make_booking(status="delivered")
        with pytest.raises(InvalidTransition):
            LifecycleEngine(db_session).transition(booking.id, "cancelled", "admin", "changed mind")

    def test_cancel_requires_reason(self, db_session, make_booking):
        booking = make_booking()
        with pytest.raises(ValidationError):
            LifecycleEngine(db_session).transition(booking.id, "cancelled", "customer", "   ")

    def test_unknown_status(self, db_session, make_booking):
        booking = make_booking()
        with pytest.raises(ValidationError):
            LifecycleEngine(db_session).transition(booking.id, "washed", "admin")

    def test_unknown_booking(self, db_session):
        with pytest.raises(NotFound):
            LifecycleEngine(db_session).transition("missing", "confirmed", "admin")

    def test_reject_records_reason_and_frees_worker(self, db_session, worker, make_booking):
        booking = make_booking(status="confirmed", assigned_worker_id=worker.id)
        worker.current_booking_id = booking.id
        db_session.commit()

        result = LifecycleEngine(db_session).transition(booking.id, "rejected", "admin", "Area not covered")

        assert result.booking.status == "rejected"
        assert result.booking.rejection_reason == "Area not covered"
        assert result.booking.rejected_by == "admin"
        assert result.booking.rejected_at is not None
        assert result.notification[0] == "254712345678"
        assert "Area not covered" in result.notification[1]

        db_session.expire_all()
        assert db_session.get(Worker, worker.id).current_booking_id is None
        assert _modifications(db_session, booking.id)[0].type == "reject"

    def test_cancel_records_cancellation_fields(self, db_session, make_booking):
        booking = make_booking(status="confirmed")
        result = LifecycleEngine(db_session).transition(booking.id, "cancelled", "customer", "Travelling")
        assert result.booking.cancellation_reason == "Travelling"
        assert result.booking.cancelled_by == "customer"
        assert result.booking.cancelled_at is not None
        assert result.booking.rejection_reason is None


class TestConcurrentChanges:
    """The engine read a status that another writer has since replaced"""

    @staticmethod
    def _stale_snapshot(monkeypatch, booking, status):
        snapshot = SimpleNamespace(
            id=booking.id,
            status=status,
            phone=booking.phone,
            price=booking.price,
            assigned_worker_id=booking.assigned_worker_id,
        )
        monkeypatch.setattr(BookingRepository, "get_booking", staticmethod(lambda db, booking_id: snapshot))
        return snapshot

    def test_lost_race_to_same_target_is_noop(self, monkeypatch, db_session, session_factory, make_booking):
        booking = make_booking()
        self._stale_snapshot(monkeypatch, booking, "pending")

        other = session_factory()
        other.get(Booking, booking.id).status = "confirmed"
        other.commit()
        other.close()

        result = LifecycleEngine(db_session).transition(booking.id, "confirmed", "admin")

        assert result.changed is False
        assert result.previous_status == "confirmed"
        assert _modifications(db_session, booking.id) == []

    def test_lost_race_to_other_status_is_stale(self, monkeypatch, db_session, session_factory, make_booking):
        booking = make_booking()
        self._stale_snapshot(monkeypatch, booking, "pending")

        other = session_factory()
        other.get(Booking, booking.id).status = "cancelled"
        other.commit()
        other.close()

        with pytest.raises(StaleState) as exc_info:
            LifecycleEngine(db_session).transition(booking.id, "confirmed", "admin")

        assert exc_info.value.details == {"expectedStatus": "pending", "actualStatus": "cancelled"}
        assert _modifications(db_session, booking.id) == []


class TestConcurrentFinish:
    def test_double_finish_credits_worker_once(self, monkeypatch, session_factory, worker, make_booking):
        booking = make_booking(status="started_cleaning", assigned_worker_id=worker.id)
        barrier = threading.Barrier(2, timeout=10)
        compare_and_set = BookingRepository.compare_and_set_status

        def held_until_both_arrive(db, *args, **kwargs):
            barrier.wait()
            return compare_and_set(db, *args, **kwargs)

        monkeypatch.setattr(BookingRepository, "compare_and_set_status", staticmethod(held_until_both_arrive))

        changed, errors = [], []

        def finish():
            session = session_factory()
            try:
                changed.append(LifecycleEngine(session).transition(booking.id, "done", "worker").changed)
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=finish) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        assert sorted(changed) == [False, True]

        db = session_factory()
        try:
            assert db.get(Worker, worker.id).total_earnings == 80
            ledger = db.query(WorkerDailyEarning).filter(WorkerDailyEarning.worker_id == worker.id).one()
            assert ledger.amount == 80
            assert ledger.tasks_completed == 1
            assert len(_modifications(db, booking.id)) == 1
        finally:
            db.close()
