"""
Unit tests for BookingService rules with mocked repositories.
"""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from barberbook.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from barberbook.db.base import BookingStatus, Role
from barberbook.services.booking_service import BookingService, contact_notes


def make_service():
    booking_repo = Mock()
    booking_repo.save.side_effect = lambda booking: booking
    booking_repo.find_conflict.return_value = None
    return BookingService(booking_repo, Mock(), Mock(), Mock())


def user(role, user_id=1, business_id=None):
    return SimpleNamespace(id=user_id, role=role, business_id=business_id)


def booking(**overrides):
    data = dict(
        id=10,
        business_id=1,
        worker_id=2,
        client_id=3,
        start_time=datetime(2030, 1, 15, 10, 0),
        end_time=datetime(2030, 1, 15, 10, 30),
        status=BookingStatus.CONFIRMED,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


@pytest.mark.unit
@pytest.mark.services
class TestEnsureAvailable:
    def test_free_slot_passes(self):
        service = make_service()
        start, end = datetime(2030, 1, 15, 10), datetime(2030, 1, 15, 10, 30)

        service.ensure_available(2, start, end)

        service.booking_repo.find_conflict.assert_called_once_with(2, start, end, None)

    def test_conflict_raises_with_user_message(self):
        service = make_service()
        service.booking_repo.find_conflict.return_value = booking()

        with pytest.raises(ConflictError) as exc_info:
            service.ensure_available(
                2, datetime(2030, 1, 15, 10, 15), datetime(2030, 1, 15, 10, 45)
            )

        assert "not available" in str(exc_info.value)
        assert isinstance(exc_info.value, ValueError)


@pytest.mark.unit
@pytest.mark.services
class TestChangeStatus:
    def test_client_is_forbidden(self):
        service = make_service()
        with pytest.raises(PermissionDeniedError):
            service.change_status(user(Role.CLIENT, 3), booking(), "CANCELLED")

    def test_worker_completes_own_booking(self):
        service = make_service()
        result = service.change_status(user(Role.WORKER, 2), booking(), "completed")
        assert result.status == BookingStatus.COMPLETED

    def test_worker_cannot_touch_other_workers_booking(self):
        service = make_service()
        with pytest.raises(PermissionDeniedError):
            service.change_status(user(Role.WORKER, 99), booking(), "COMPLETED")

    def test_worker_cannot_confirm(self):
        service = make_service()
        with pytest.raises(PermissionDeniedError):
            service.change_status(user(Role.WORKER, 2), booking(), "CONFIRMED")

    def test_invalid_status(self):
        service = make_service()
        with pytest.raises(ValueError, match="Invalid status"):
            service.change_status(user(Role.ADMIN), booking(), "ARCHIVED")

    def test_reactivating_cancelled_booking_checks_slot(self):
        service = make_service()
        service.booking_repo.find_conflict.return_value = booking(id=11)
        cancelled = booking(status=BookingStatus.CANCELLED)

        with pytest.raises(ConflictError):
            service.change_status(user(Role.ADMIN), cancelled, "CONFIRMED")

        service.booking_repo.find_conflict.assert_called_once_with(
            2, cancelled.start_time, cancelled.end_time, 10
        )


@pytest.mark.unit
@pytest.mark.services
class TestSetPaid:
    def test_requires_boolean(self):
        service = make_service()
        with pytest.raises(ValueError, match="isPaid must be a boolean"):
            service.set_paid(booking(is_paid=False), "yes")

    def test_marks_paid(self):
        service = make_service()
        assert service.set_paid(booking(is_paid=False), True).is_paid is True


@pytest.mark.unit
@pytest.mark.services
class TestLoadServiceAndWorker:
    def test_service_from_other_business_is_not_found(self):
        service = make_service()
        service.service_repo.get_by_id.return_value = SimpleNamespace(id=5, business_id=2)

        with pytest.raises(NotFoundError, match="Service not found"):
            service._load_service_and_worker(1, 5, 2)

    def test_client_cannot_be_booked_as_worker(self):
        service = make_service()
        service.service_repo.get_by_id.return_value = SimpleNamespace(id=5, business_id=1)
        service.user_repo.get_by_id.return_value = user(Role.CLIENT, 2, business_id=1)

        with pytest.raises(NotFoundError, match="Worker not found"):
            service._load_service_and_worker(1, 5, 2)


@pytest.mark.unit
def test_contact_notes_layout():
    assert contact_notes("Gus", "gus@example.com", "555", "Short back") == (
        "Name: Gus\nEmail: gus@example.com\nPhone: 555\nNotes: Short back"
    )
    assert contact_notes("Gus", "gus@example.com", None, None) == (
        "Name: Gus\nEmail: gus@example.com"
    )
