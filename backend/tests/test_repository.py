from datetime import date

import pytest

from yoon.core.errors import RepositoryError, TripNotFoundError
from yoon.models.domain import BookingStatus


def _legacy_trip(**overrides) -> dict:
    doc = {
        "departure": "Dakar",
        "destination": "Saint-Louis",
        "date": "05 janvier 2025",
        "time": "7 h 05",
        "price": 6000,
        "availableSeats": 4,
        "driverId": "driver",
        "driverName": "Moussa",
        "driverRating": 0,
        "driverTripsCount": 0,
        "status": "active",
        "createdAt": "2025-01-01T09:00:00+00:00",
    }
    doc.update(overrides)
    return doc


def test_legacy_locale_documents_are_read_in_canonical_form(repository):
    repository.put_document("trips", "t1", _legacy_trip())

    trip = repository.get_trip("t1")

    assert trip.date == date(2025, 1, 5)
    assert trip.time == "07:05"
    assert trip.available_seats == 4


def test_trip_written_with_iso_date_and_24h_time(repository, make_user, make_trip):
    trip = make_trip(make_user("driver"))

    raw = repository.collections["trips"][trip.trip_id]

    assert raw["date"] == "2025-03-01"
    assert raw["time"] == "08:30"
    assert raw["availableSeats"] == 3
    assert raw["driverId"] == "driver"


def test_malformed_document_fails_fast(repository):
    repository.put_document("trips", "broken", _legacy_trip(availableSeats="lots"))
    repository.put_document("bookings", "b1", {"tripId": "t1"})

    with pytest.raises(RepositoryError):
        repository.get_trip("broken")
    with pytest.raises(RepositoryError):
        repository.get_booking("b1")


def test_increment_refuses_negative_seats(repository):
    repository.put_document("trips", "t1", _legacy_trip(availableSeats=1))

    with pytest.raises(RepositoryError):
        repository.increment_trip("t1", "available_seats", -2)
    assert repository.get_trip("t1").available_seats == 1


def test_increment_unknown_trip_or_field(repository):
    repository.put_document("trips", "t1", _legacy_trip())

    with pytest.raises(TripNotFoundError):
        repository.increment_trip("missing", "available_seats", 1)
    with pytest.raises(RepositoryError):
        repository.increment_trip("t1", "price", 1)


def test_query_bookings_filters(repository, make_user, make_trip, service_for):
    driver = make_user("driver")
    first, second = make_trip(driver), make_trip(driver)
    alice, bob = make_user("alice"), make_user("bob")
    service_for(alice).create_booking(first.trip_id, 1)
    service_for(alice).create_booking(second.trip_id, 1)
    service_for(bob).create_booking(first.trip_id, 1)

    assert len(repository.query_bookings(trip_id=first.trip_id)) == 2
    assert len(repository.query_bookings(passenger_id="alice")) == 2
    assert len(
        repository.query_bookings(
            trip_id=first.trip_id, passenger_id="bob", status=BookingStatus.confirmed
        )
    ) == 1


def test_transaction_rolls_back_on_error(repository):
    repository.put_document("trips", "t1", _legacy_trip())

    with pytest.raises(RuntimeError):
        with repository.transaction():
            repository.increment_trip("t1", "available_seats", -3)
            repository.delete_trip("t1")
            raise RuntimeError("abort")

    assert repository.get_trip("t1").available_seats == 4


def test_query_trips_by_driver(repository, make_user, make_trip):
    make_trip(make_user("driver"))
    make_trip(make_user("other"))

    assert [t.driver_id for t in repository.query_trips(driver_id="other")] == ["other"]
    assert len(repository.query_trips()) == 2
