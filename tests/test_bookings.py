"""Tests for booking creation and the booking lifecycle."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time

import pytest

from conftest import booking_payload, fixed_clock, make_customer, make_service
from studio.domain.bookings.service import BookingService
from studio.domain.bookings.state import can_transition
from studio.exceptions import (
    ConflictError,
    InvalidDateError,
    InvalidServiceError,
    InvalidTransitionError,
    NotFoundError,
)
from studio.models import Booking, BookingStatus, PaymentStatus
from studio.services.notification_service import BookingEventType

JUNE_20 = date(2024, 6, 20)


@pytest.fixture
def massage(db):
    return make_service(db)


@pytest.fixture
def customer(db):
    return make_customer(db)


@pytest.fixture
def booking(booking_service, customer, massage):
    return booking_service.create_booking(customer.id, massage.id, JUNE_20, time(14, 0), "First visit")


class TestCreateBooking:
    def test_initial_state_and_snapshot(self, booking, massage):
        assert booking.status == BookingStatus.PENDING.value
        assert booking.payment_status == PaymentStatus.PENDING.value
        assert booking.start_time == datetime(2024, 6, 20, 14, 0)
        assert booking.end_time == datetime(2024, 6, 20, 15, 30)
        assert booking.duration_minutes == 90
        assert booking.total_price_cents == 12000

    def test_overlapping_booking_conflicts(self, booking_service, booking, customer, massage):
        with pytest.raises(ConflictError):
            booking_service.create_booking(customer.id, massage.id, JUNE_20, time(14, 30))

    def test_back_to_back_bookings_are_allowed(self, booking_service, booking, customer, massage):
        after = booking_service.create_booking(customer.id, massage.id, JUNE_20, time(15, 30))
        before = booking_service.create_booking(customer.id, massage.id, JUNE_20, time(12, 30))
        assert after.start_time == booking.end_time
        assert before.end_time == booking.start_time

    def test_different_service_still_conflicts(self, db, booking_service, booking, customer):
        facial = make_service(db, name="Classic Facial", duration_minutes=60, price_cents=7500)
        with pytest.raises(ConflictError):
            booking_service.create_booking(customer.id, facial.id, JUNE_20, time(15, 0))

    def test_cancelled_booking_frees_the_interval(self, booking_service, booking, customer, massage):
        booking_service.cancel_booking(booking.id, "admin")
        rebooked = booking_service.create_booking(customer.id, massage.id, JUNE_20, time(14, 0))
        assert rebooked.status == BookingStatus.PENDING.value

    def test_inactive_service(self, db, booking_service, customer):
        retired = make_service(db, is_active=False)
        with pytest.raises(InvalidServiceError):
            booking_service.create_booking(customer.id, retired.id, JUNE_20, time(10, 0))

    def test_past_start(self, booking_service, customer, massage):
        with pytest.raises(InvalidDateError):
            booking_service.create_booking(customer.id, massage.id, date(2024, 5, 31), time(10, 0))

    def test_must_end_before_closing(self, booking_service, customer, massage):
        with pytest.raises(InvalidDateError):
            booking_service.create_booking(customer.id, massage.id, JUNE_20, time(17, 0))

    def test_must_start_after_opening(self, booking_service, customer, massage):
        with pytest.raises(InvalidDateError):
            booking_service.create_booking(customer.id, massage.id, JUNE_20, time(8, 30))

    def test_unknown_customer(self, booking_service, massage):
        with pytest.raises(NotFoundError):
            booking_service.create_booking("missing", massage.id, JUNE_20, time(10, 0))

    def test_price_change_does_not_touch_existing_booking(self, db, booking_service, booking, massage):
        massage.price_cents = 20000
        massage.duration_minutes = 120
        db.commit()

        reloaded = booking_service.get_booking(booking.id)
        assert reloaded.total_price_cents == 12000
        assert reloaded.end_time == datetime(2024, 6, 20, 15, 30)

    def test_created_event_is_queued(self, booking_service, booking):
        assert [e.event_type for e in booking_service.events] == [BookingEventType.CREATED]
        assert booking_service.events[0].customer_email == "jane@example.com"


class TestConcurrentBooking:
    def test_overlapping_requests_book_the_slot_once(self, file_store):
        setup = file_store()
        service_id = make_service(setup).id
        customer_id = make_customer(setup).id
        setup.close()

        def attempt(start):
            session = file_store()
            try:
                BookingService(session, clock=fixed_clock).create_booking(customer_id, service_id, JUNE_20, start)
                return "ok"
            except ConflictError:
                return "conflict"
            finally:
                session.close()

        # 14:00 and 14:30 both overlap a 90 minute massage starting at either time
        starts = [time(14, 0), time(14, 30)] * 16
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, starts))

        assert results.count("ok") == 1
        assert results.count("conflict") == len(starts) - 1

        check = file_store()
        try:
            assert check.query(Booking).count() == 1
        finally:
            check.close()


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current,target,allowed",
        [
            ("pending", "confirmed", True),
            ("pending", "cancelled", True),
            ("confirmed", "completed", True),
            ("confirmed", "cancelled", True),
            ("pending", "completed", False),
            ("confirmed", "pending", False),
            ("completed", "cancelled", False),
            ("cancelled", "confirmed", False),
            ("cancelled", "pending", False),
        ],
    )
    def test_transition_table(self, current, target, allowed):
        assert can_transition(current, target) is allowed

    def test_confirm_then_complete(self, booking_service, booking):
        booking_service.update_status(booking.id, "confirmed")
        completed = booking_service.update_status(booking.id, "completed")
        assert completed.status == BookingStatus.COMPLETED.value

    def test_pending_cannot_complete(self, booking_service, booking):
        with pytest.raises(InvalidTransitionError):
            booking_service.update_status(booking.id, "completed")
        assert booking_service.get_booking(booking.id).status == BookingStatus.PENDING.value

    def test_cancelled_is_terminal(self, booking_service, booking):
        booking_service.update_status(booking.id, "cancelled")
        with pytest.raises(InvalidTransitionError):
            booking_service.update_status(booking.id, "confirmed")

    def test_confirming_after_failed_payment_resets_payment(self, booking_service, booking):
        booking_service.record_payment_outcome(booking.id, "failed")
        confirmed = booking_service.update_status(booking.id, "confirmed")
        assert confirmed.status == BookingStatus.CONFIRMED.value
        assert confirmed.payment_status == PaymentStatus.PENDING.value

    def test_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundError):
            booking_service.update_status("missing", "confirmed")


class TestPaymentOutcomes:
    def test_success_confirms_pending_booking(self, booking_service, booking):
        paid = booking_service.record_payment_outcome(booking.id, "succeeded")
        assert paid.status == BookingStatus.CONFIRMED.value
        assert paid.payment_status == PaymentStatus.PAID.value

    def test_success_is_idempotent(self, booking_service, booking):
        booking_service.record_payment_outcome(booking.id, "succeeded")
        events_before = len(booking_service.events)

        again = booking_service.record_payment_outcome(booking.id, "succeeded")

        assert again.payment_status == PaymentStatus.PAID.value
        assert len(booking_service.events) == events_before

    def test_success_rejected_on_cancelled_booking(self, booking_service, booking):
        booking_service.cancel_booking(booking.id, "admin")
        with pytest.raises(InvalidTransitionError):
            booking_service.record_payment_outcome(booking.id, "succeeded")

    def test_failure_keeps_booking_pending(self, booking_service, booking):
        failed = booking_service.record_payment_outcome(booking.id, "failed")
        assert failed.status == BookingStatus.PENDING.value
        assert failed.payment_status == PaymentStatus.FAILED.value
        assert failed.payment_failures == 1

    def test_failure_drops_confirmed_to_pending(self, booking_service, booking):
        booking_service.update_status(booking.id, "confirmed")
        failed = booking_service.record_payment_outcome(booking.id, "failed")
        assert failed.status == BookingStatus.PENDING.value

    def test_repeated_failures_cancel_booking(self, booking_service, booking):
        booking_service.max_payment_failures = 2
        booking_service.record_payment_outcome(booking.id, "failed")
        cancelled = booking_service.record_payment_outcome(booking.id, "failed")

        assert cancelled.status == BookingStatus.CANCELLED.value
        assert cancelled.cancelled_by == "payment"

    def test_failure_rejected_after_payment(self, booking_service, booking):
        booking_service.record_payment_outcome(booking.id, "succeeded")
        with pytest.raises(InvalidTransitionError):
            booking_service.record_payment_outcome(booking.id, "failed")

    def test_retry_after_failure_succeeds(self, booking_service, booking):
        booking_service.record_payment_outcome(booking.id, "failed")
        paid = booking_service.record_payment_outcome(booking.id, "succeeded")
        assert (paid.status, paid.payment_status) == ("confirmed", "paid")

    @pytest.mark.parametrize("setup", ["pending", "confirmed", "completed"])
    def test_refund_always_cancels(self, booking_service, booking, setup):
        if setup in ("confirmed", "completed"):
            booking_service.record_payment_outcome(booking.id, "succeeded")
        if setup == "completed":
            booking_service.update_status(booking.id, "completed")

        refunded = booking_service.record_payment_outcome(booking.id, "refunded")

        assert refunded.payment_status == PaymentStatus.REFUNDED.value
        assert refunded.status == BookingStatus.CANCELLED.value

    def test_no_payment_after_refund(self, booking_service, booking):
        booking_service.record_payment_outcome(booking.id, "refunded")
        with pytest.raises(InvalidTransitionError):
            booking_service.record_payment_outcome(booking.id, "succeeded")

    def test_unknown_outcome(self, booking_service, booking):
        with pytest.raises(ValueError):
            booking_service.record_payment_outcome(booking.id, "chargeback")


class TestReschedule:
    def test_moves_booking_and_keeps_duration(self, booking_service, booking):
        moved = booking_service.reschedule_booking(booking.id, datetime(2024, 6, 21, 10, 0))

        assert moved.appointment_date == date(2024, 6, 21)
        assert moved.start_time == datetime(2024, 6, 21, 10, 0)
        assert moved.end_time == datetime(2024, 6, 21, 11, 30)
        assert booking_service.events[-1].event_type == BookingEventType.RESCHEDULED
        assert booking_service.events[-1].previous_start_time == datetime(2024, 6, 20, 14, 0)

    def test_can_overlap_its_own_interval(self, booking_service, booking):
        moved = booking_service.reschedule_booking(booking.id, datetime(2024, 6, 20, 14, 30))
        assert moved.end_time == datetime(2024, 6, 20, 16, 0)

    def test_conflicts_with_other_booking(self, booking_service, booking, customer, massage):
        other = booking_service.create_booking(customer.id, massage.id, JUNE_20, time(10, 0))
        with pytest.raises(ConflictError):
            booking_service.reschedule_booking(other.id, datetime(2024, 6, 20, 13, 30))

    def test_completed_booking_cannot_be_rescheduled(self, booking_service, booking):
        booking_service.update_status(booking.id, "confirmed")
        booking_service.update_status(booking.id, "completed")

        with pytest.raises(InvalidTransitionError):
            booking_service.reschedule_booking(booking.id, datetime(2024, 6, 21, 10, 0))

        unchanged = booking_service.get_booking(booking.id)
        assert unchanged.status == BookingStatus.COMPLETED.value
        assert unchanged.start_time == datetime(2024, 6, 20, 14, 0)

    def test_new_start_must_be_in_business_hours(self, booking_service, booking):
        with pytest.raises(InvalidDateError):
            booking_service.reschedule_booking(booking.id, datetime(2024, 6, 21, 17, 0))

    def test_new_start_must_be_in_future(self, booking_service, booking):
        with pytest.raises(InvalidDateError):
            booking_service.reschedule_booking(booking.id, datetime(2024, 5, 30, 10, 0))

    def test_customer_email_must_match(self, booking_service, booking):
        with pytest.raises(NotFoundError):
            booking_service.reschedule_booking(booking.id, datetime(2024, 6, 21, 10, 0), customer_email="other@example.com")


class TestCancel:
    def test_customer_cancels_future_booking(self, booking_service, booking):
        cancelled = booking_service.cancel_booking(booking.id, "customer", customer_email="JANE@example.com")
        assert cancelled.status == BookingStatus.CANCELLED.value
        assert cancelled.cancelled_by == "customer"

    def test_wrong_email_looks_like_missing_booking(self, booking_service, booking):
        with pytest.raises(NotFoundError):
            booking_service.cancel_booking(booking.id, "customer", customer_email="mallory@example.com")
        assert booking_service.get_booking(booking.id).status == BookingStatus.PENDING.value

    def test_cannot_cancel_twice(self, booking_service, booking):
        booking_service.cancel_booking(booking.id, "customer")
        with pytest.raises(InvalidTransitionError):
            booking_service.cancel_booking(booking.id, "customer")

    def test_customer_cannot_cancel_started_appointment(self, db, booking_service, customer, massage):
        past = Booking(
            customer_id=customer.id,
            service_id=massage.id,
            appointment_date=date(2024, 5, 30),
            start_time=datetime(2024, 5, 30, 10, 0),
            end_time=datetime(2024, 5, 30, 11, 30),
            duration_minutes=90,
            total_price_cents=12000,
        )
        db.add(past)
        db.commit()

        with pytest.raises(InvalidTransitionError):
            booking_service.cancel_booking(past.id, "customer")

        assert booking_service.cancel_booking(past.id, "admin").status == BookingStatus.CANCELLED.value

    def test_admin_past_cancel_policy_can_be_disabled(self, db, booking_service, customer, massage):
        past = Booking(
            customer_id=customer.id,
            service_id=massage.id,
            appointment_date=date(2024, 5, 30),
            start_time=datetime(2024, 5, 30, 10, 0),
            end_time=datetime(2024, 5, 30, 11, 30),
            duration_minutes=90,
            total_price_cents=12000,
        )
        db.add(past)
        db.commit()
        booking_service.admin_can_cancel_past = False

        with pytest.raises(InvalidTransitionError):
            booking_service.cancel_booking(past.id, "admin")


class TestDelete:
    def test_delete_removes_row_and_emits_event(self, db, booking_service, booking):
        booking_id = booking.id
        booking_service.delete_booking(booking_id)

        assert db.query(Booking).filter(Booking.id == booking_id).first() is None
        assert booking_service.events[-1].event_type == BookingEventType.DELETED
        assert booking_service.events[-1].booking_id == booking_id

    def test_delete_unknown(self, booking_service):
        with pytest.raises(NotFoundError):
            booking_service.delete_booking("missing")


class TestBookingEndpoints:
    def test_swedish_massage_scenario(self, client, db):
        massage = make_service(db)

        created = client.post("/bookings", json=booking_payload(massage.id))
        assert created.status_code == 201
        body = created.json()
        assert body["status"] == "pending"
        assert body["paymentStatus"] == "pending"
        assert body["totalPriceCents"] == 12000
        assert (body["startTime"], body["endTime"]) == ("14:00", "15:30")

        slots = client.get("/availability", params={"date": "2024-06-20", "serviceId": massage.id}).json()["slots"]
        availability = {s["time"]: s["available"] for s in slots}
        assert availability["14:00"] is False
        assert availability["15:30"] is True

        conflict = client.post("/bookings", json=booking_payload(massage.id, time="14:30", customerEmail="sam@example.com"))
        assert conflict.status_code == 409
        assert conflict.json()["error"] == "conflict"

    def test_create_dispatches_event(self, client, db, recorder):
        massage = make_service(db)
        response = client.post("/bookings", json=booking_payload(massage.id))

        assert response.status_code == 201
        assert [e.event_type for e in recorder.events] == [BookingEventType.CREATED]
        assert recorder.events[0].booking_id == response.json()["bookingId"]

    def test_accepts_twelve_hour_time(self, client, db):
        massage = make_service(db)
        response = client.post("/bookings", json=booking_payload(massage.id, time="2:00 PM"))
        assert response.status_code == 201
        assert response.json()["startTime"] == "14:00"

    def test_invalid_date_is_400(self, client, db):
        massage = make_service(db)
        response = client.post("/bookings", json=booking_payload(massage.id, date="2024-05-01"))
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_date"

    def test_malformed_request_is_422(self, client, db):
        massage = make_service(db)
        response = client.post("/bookings", json=booking_payload(massage.id, customerEmail="nope"))
        assert response.status_code == 422

    def test_notes_are_sanitized(self, client, db):
        massage = make_service(db)
        response = client.post("/bookings", json=booking_payload(massage.id, notes="<script>x</script>"))
        assert response.json()["notes"] == "&lt;script&gt;x&lt;/script&gt;"

    def test_public_cancel_and_reschedule(self, client, db):
        massage = make_service(db)
        booking_id = client.post("/bookings", json=booking_payload(massage.id)).json()["bookingId"]

        wrong = client.post(f"/bookings/{booking_id}/reschedule", json={"newDate": "2024-06-21", "newTime": "10:00", "email": "x@example.com"})
        assert wrong.status_code == 404

        moved = client.post(
            f"/bookings/{booking_id}/reschedule",
            json={"newDate": "2024-06-21", "newTime": "10:00", "email": "jane@example.com"},
        )
        assert moved.status_code == 200
        assert moved.json()["appointmentDate"] == "2024-06-21"

        cancelled = client.post(f"/bookings/{booking_id}/cancel", json={"email": "jane@example.com"})
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancelledBy"] == "customer"

    def test_status_update_requires_admin(self, client, db):
        massage = make_service(db)
        booking_id = client.post("/bookings", json=booking_payload(massage.id)).json()["bookingId"]

        response = client.put(f"/bookings/{booking_id}", json={"status": "confirmed"})
        assert response.status_code in (401, 403)

    def test_admin_status_update_and_illegal_transition(self, client, db, admin_headers, recorder):
        massage = make_service(db)
        booking_id = client.post("/bookings", json=booking_payload(massage.id)).json()["bookingId"]

        confirmed = client.put(f"/bookings/{booking_id}", json={"status": "confirmed"}, headers=admin_headers)
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"
        assert recorder.events[-1].event_type == BookingEventType.STATUS_CHANGED
        assert recorder.events[-1].previous_status == "pending"

        illegal = client.put(f"/bookings/{booking_id}", json={"status": "pending"}, headers=admin_headers)
        assert illegal.status_code == 409
        assert illegal.json()["error"] == "invalid_transition"

    def test_admin_listing_filters(self, client, db, admin_headers):
        massage = make_service(db)
        first = client.post("/bookings", json=booking_payload(massage.id)).json()["bookingId"]
        client.post("/bookings", json=booking_payload(massage.id, date="2024-06-21", customerEmail="sam@example.com"))
        client.post(f"/admin/bookings/{first}/cancel", headers=admin_headers)

        by_day = client.get("/admin/bookings", params={"date": "2024-06-20"}, headers=admin_headers).json()
        assert [b["bookingId"] for b in by_day] == [first]

        pending = client.get("/admin/bookings", params={"status": "pending"}, headers=admin_headers).json()
        assert [b["appointmentDate"] for b in pending] == ["2024-06-21"]

        bad = client.get("/admin/bookings", params={"status": "lost"}, headers=admin_headers)
        assert bad.status_code == 400

    def test_admin_payment_reschedule_and_delete(self, client, db, admin_headers, recorder):
        massage = make_service(db)
        booking_id = client.post("/bookings", json=booking_payload(massage.id)).json()["bookingId"]

        paid = client.post(f"/admin/bookings/{booking_id}/payment", json={"outcome": "succeeded"}, headers=admin_headers)
        assert (paid.json()["status"], paid.json()["paymentStatus"]) == ("confirmed", "paid")

        moved = client.post(
            f"/admin/bookings/{booking_id}/reschedule",
            json={"newDate": "2024-06-22", "newTime": "09:00"},
            headers=admin_headers,
        )
        assert moved.json()["startTime"] == "09:00"

        deleted = client.delete(f"/admin/bookings/{booking_id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert client.get(f"/admin/bookings/{booking_id}", headers=admin_headers).status_code == 404
        assert recorder.events[-1].event_type == BookingEventType.DELETED
