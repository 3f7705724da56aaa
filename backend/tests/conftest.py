from datetime import date, datetime, timezone

import pytest

from yoon.models.domain import Trip, UserProfile
from yoon.services.booking_service import BookingService
from yoon.services.identity import SessionIdentity
from yoon.storage.repository import InMemoryRepository


class RecordingNotifier:
    def __init__(self, fail_with: Exception | None = None) -> None:
        self.sent = []
        self.fail_with = fail_with

    def send(self, token, title, body, data=None):
        if self.fail_with:
            raise self.fail_with
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        return {"data": {"status": "ok"}}


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def make_user(repository):
    def _make_user(user_id: str, name: str | None = None, push_token: str | None = None):
        user = UserProfile(
            user_id=user_id,
            name=name or user_id.title(),
            email=f"{user_id}@example.com",
            phone="+221770000000",
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            push_token=push_token,
        )
        return repository.save_user(user)

    return _make_user


@pytest.fixture
def make_trip(repository):
    def _make_trip(driver: UserProfile, seats: int = 3, price: float = 2500.0):
        trip = Trip(
            trip_id="",
            departure="Dakar",
            destination="Thiès",
            date=date(2025, 3, 1),
            time="08:30",
            price=price,
            available_seats=seats,
            driver_id=driver.user_id,
            driver_name=driver.name,
            created_at=datetime(2025, 2, 1, tzinfo=timezone.utc),
        )
        return repository.create_trip(trip)

    return _make_trip


@pytest.fixture
def service_for(repository):
    def _service_for(user: UserProfile | None, notifier=None) -> BookingService:
        return BookingService(
            trips=repository,
            bookings=repository,
            users=repository,
            identity=SessionIdentity(user),
            notifier=notifier,
        )

    return _service_for
