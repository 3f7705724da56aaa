"""Booking consistency engine.

Keeps ``Trip.available_seats`` equal to the capacity left after the seats
held by confirmed bookings, and makes sure a passenger holds at most one
confirmed booking per trip. Booking and cancellation each run inside a
single repository transaction. The driver notification is sent after the
transaction, or handed to the caller to run later, and never affects the
booking outcome.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from yoon.core.config import settings
from yoon.core.errors import (
    BookingNotFoundError,
    DuplicateBookingError,
    InvalidSeatCountError,
    NotBookingOwnerError,
    NotTripOwnerError,
    SelfBookingError,
    TripNotFoundError,
)
from yoon.models.domain import (
    Booking,
    BookingStatus,
    PassengerBooking,
    Trip,
    TripAggregates,
    TripPassengers,
    TripSummary,
)
from yoon.services.identity import SessionIdentity
from yoon.services.notifications import NotificationDispatcher
from yoon.storage.repository import BookingRepository, TripRepository, UserRepository

logger = logging.getLogger(__name__)

SEATS_FIELD = "available_seats"


def parse_seat_count(raw) -> int:
    """Turn a requested seat count into a positive int, or raise."""
    if isinstance(raw, bool):
        raise InvalidSeatCountError(f"Seat count must be an integer, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdecimal():
        value = int(raw.strip())
    else:
        raise InvalidSeatCountError(f"Seat count must be an integer, got {raw!r}")
    if value < 1:
        raise InvalidSeatCountError(f"Seat count must be positive, got {value}")
    return value


def aggregate_bookings(bookings: Iterable[Booking]) -> TripAggregates:
    aggregates = TripAggregates()
    for booking in bookings:
        aggregates.passenger_count += 1
        aggregates.total_seats_booked += booking.seats_booked
        aggregates.total_revenue += booking.total_price
    return aggregates


def _format_amount(value: float) -> str:
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.2f}"


def booking_share_message(entry: PassengerBooking, currency: str | None = None) -> str:
    currency = currency or settings.currency
    booking = entry.booking
    if entry.trip is None:
        return (
            "Ma réservation de covoiturage\n\n"
            f"{booking.seats_booked} place(s) réservée(s)\n"
            f"Prix: {_format_amount(booking.total_price)} {currency}\n\n"
            "Réservé via Yoon"
        )
    trip = entry.trip
    return (
        "Ma réservation de covoiturage\n\n"
        f"{trip.departure} → {trip.destination}\n"
        f"{trip.date.isoformat()} à {trip.time}\n"
        f"{booking.seats_booked} place(s) réservée(s)\n"
        f"Conducteur: {trip.driver_name}\n"
        f"Prix: {_format_amount(booking.total_price)} {currency}\n\n"
        "Réservé via Yoon"
    )


class BookingService:
    def __init__(
        self,
        trips: TripRepository,
        bookings: BookingRepository,
        users: UserRepository,
        identity: SessionIdentity,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.trips = trips
        self.bookings = bookings
        self.users = users
        self.identity = identity
        self.notifier = notifier

    def create_booking(self, trip_id: str, requested_seats, notify: bool = True) -> Booking:
        passenger = self.identity.require_user()
        seats = parse_seat_count(requested_seats)

        with self.trips.transaction():
            trip = self._load_trip(trip_id)
            if trip.driver_id == passenger.user_id:
                raise SelfBookingError()
            if seats > trip.available_seats:
                raise InvalidSeatCountError(
                    f"Requested {seats} seats, {trip.available_seats} available",
                    message=self._seat_range_message(trip.available_seats),
                )
            existing = self.bookings.query_bookings(
                trip_id=trip_id,
                passenger_id=passenger.user_id,
                status=BookingStatus.confirmed,
            )
            if existing:
                raise DuplicateBookingError()

            profile = self.users.get_user(passenger.user_id) or passenger
            booking = Booking(
                booking_id="",
                trip_id=trip.trip_id,
                passenger_id=passenger.user_id,
                passenger_name=profile.name or "Utilisateur",
                passenger_phone=profile.phone or "",
                driver_id=trip.driver_id,
                seats_booked=seats,
                total_price=seats * trip.price,
                status=BookingStatus.confirmed,
                created_at=datetime.now(timezone.utc),
            )
            self.bookings.create_booking(booking)
            self.trips.increment_trip(trip.trip_id, SEATS_FIELD, -seats)

        logger.info(
            "Booking %s: %s booked %d seat(s) on trip %s for %g",
            booking.booking_id,
            booking.passenger_id,
            seats,
            trip.trip_id,
            booking.total_price,
        )
        if notify:
            self._notify_driver(trip, booking)
        return booking

    def cancel_booking(self, booking_id: str) -> None:
        user = self.identity.require_user()

        with self.trips.transaction():
            booking = self.bookings.get_booking(booking_id)
            if booking is None:
                raise BookingNotFoundError()
            if booking.passenger_id != user.user_id:
                raise NotBookingOwnerError()

            self.bookings.delete_booking(booking_id)
            if self.trips.get_trip(booking.trip_id) is None:
                logger.warning(
                    "Booking %s cancelled but trip %s no longer exists; no seats restored",
                    booking_id,
                    booking.trip_id,
                )
                return
            self.trips.increment_trip(booking.trip_id, SEATS_FIELD, booking.seats_booked)

        logger.info(
            "Booking %s cancelled, %d seat(s) restored on trip %s",
            booking_id,
            booking.seats_booked,
            booking.trip_id,
        )

    def compute_trip_aggregates(self, trip_id: str) -> TripAggregates:
        return aggregate_bookings(self._confirmed_bookings(trip_id))

    def delete_trip(self, trip_id: str) -> None:
        requester = self.identity.require_user()
        with self.trips.transaction():
            trip = self._load_trip(trip_id)
            if trip.driver_id != requester.user_id:
                raise NotTripOwnerError()
            self.trips.delete_trip(trip_id)

        orphaned = self.bookings.query_bookings(trip_id=trip_id)
        if orphaned:
            logger.warning(
                "Trip %s deleted with %d booking(s) still referencing it",
                trip_id,
                len(orphaned),
            )
        else:
            logger.info("Trip %s deleted", trip_id)

    def list_trip_passengers(self, trip_id: str) -> TripPassengers:
        requester = self.identity.require_user()
        trip = self._load_trip(trip_id)
        if trip.driver_id != requester.user_id:
            raise NotTripOwnerError()
        bookings = sorted(self._confirmed_bookings(trip_id), key=lambda b: b.created_at)
        return TripPassengers(
            trip=trip,
            bookings=bookings,
            aggregates=aggregate_bookings(bookings),
        )

    def notify_driver(self, booking: Booking) -> None:
        """Tell the driver about a new booking; a vanished trip is skipped."""
        try:
            trip = self.trips.get_trip(booking.trip_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not load trip %s for notification: %s", booking.trip_id, exc)
            return
        if trip is None:
            logger.info("Trip %s is gone, skipping notification", booking.trip_id)
            return
        self._notify_driver(trip, booking)

    def list_passenger_bookings(self) -> List[PassengerBooking]:
        passenger = self.identity.require_user()
        bookings = self.bookings.query_bookings(passenger_id=passenger.user_id)
        entries = [
            PassengerBooking(booking=b, trip=self._trip_summary(b.trip_id)) for b in bookings
        ]
        entries.sort(key=lambda e: e.booking.created_at, reverse=True)
        return entries

    def get_passenger_booking(self, booking_id: str) -> PassengerBooking:
        passenger = self.identity.require_user()
        booking = self.bookings.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError()
        if booking.passenger_id != passenger.user_id:
            raise NotBookingOwnerError()
        return PassengerBooking(booking=booking, trip=self._trip_summary(booking.trip_id))

    def _load_trip(self, trip_id: str) -> Trip:
        trip = self.trips.get_trip(trip_id)
        if trip is None:
            raise TripNotFoundError()
        return trip

    def _confirmed_bookings(self, trip_id: str) -> List[Booking]:
        return self.bookings.query_bookings(trip_id=trip_id, status=BookingStatus.confirmed)

    def _trip_summary(self, trip_id: str) -> Optional[TripSummary]:
        trip = self.trips.get_trip(trip_id)
        if trip is None:
            return None
        return TripSummary(
            departure=trip.departure,
            destination=trip.destination,
            date=trip.date,
            time=trip.time,
            driver_name=trip.driver_name,
        )

    def _notify_driver(self, trip: Trip, booking: Booking) -> None:
        if self.notifier is None:
            return
        try:
            driver = self.users.get_user(trip.driver_id)
            if driver is None or not driver.push_token:
                logger.info("Driver %s has no push token, skipping notification", trip.driver_id)
                return
            self.notifier.send(
                driver.push_token,
                "Nouvelle réservation !",
                f"{booking.passenger_name or 'Un passager'} a réservé "
                f"{booking.seats_booked} place(s) pour {trip.departure} → {trip.destination}",
                {"screen": "/my-trips", "tripId": trip.trip_id},
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to notify driver %s of booking %s: %s", trip.driver_id, booking.booking_id, exc)

    @staticmethod
    def _seat_range_message(available: int) -> str:
        if available <= 0:
            return "Ce trajet est complet"
        return f"Veuillez saisir un nombre entre 1 et {available}"
