from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Protocol
from uuid import uuid4

from pydantic import ValidationError

from yoon.core.errors import RepositoryError, TripNotFoundError
from yoon.models.documents import BookingDocument, TripDocument, UserDocument
from yoon.models.domain import Booking, BookingStatus, Trip, UserProfile

logger = logging.getLogger(__name__)

USERS = "users"
TRIPS = "trips"
BOOKINGS = "bookings"

COUNTER_FIELDS = {"available_seats": "availableSeats"}


class TripRepository(Protocol):
    def transaction(self) -> Iterator[None]:
        ...

    def create_trip(self, trip: Trip) -> Trip:
        ...

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        ...

    def query_trips(self, driver_id: Optional[str] = None) -> List[Trip]:
        ...

    def increment_trip(self, trip_id: str, field: str, delta: int) -> Trip:
        ...

    def delete_trip(self, trip_id: str) -> bool:
        ...


class BookingRepository(Protocol):
    def create_booking(self, booking: Booking) -> Booking:
        ...

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        ...

    def query_bookings(
        self,
        trip_id: Optional[str] = None,
        passenger_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        ...

    def delete_booking(self, booking_id: str) -> bool:
        ...


class UserRepository(Protocol):
    def save_user(self, user: UserProfile) -> UserProfile:
        ...

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        ...

    def find_user_by_email(self, email: str) -> Optional[UserProfile]:
        ...

    def update_user(self, user_id: str, **fields) -> UserProfile:
        ...


class InMemoryRepository:
    """
    Document store holding the ``users``, ``trips`` and ``bookings`` collections.

    Records are kept as plain camelCase documents and validated through the
    document models on every read and write. A single re-entrant lock backs
    ``transaction()`` so a read-check-write sequence runs without another
    writer interleaving; an exception inside the outermost transaction
    restores the collections as they were when it started.
    """

    def __init__(self) -> None:
        self.collections: Dict[str, Dict[str, dict]] = {
            USERS: {},
            TRIPS: {},
            BOOKINGS: {},
        }
        self._lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            outermost = self._depth == 0
            snapshot = copy.deepcopy(self.collections) if outermost else None
            self._depth += 1
            try:
                yield
            except Exception:
                if outermost and self.collections != snapshot:
                    self.collections = snapshot
                    logger.warning("Transaction rolled back")
                raise
            finally:
                self._depth -= 1

    def put_document(self, collection: str, doc_id: str, data: dict) -> None:
        """Store a raw document as-is, the way another client would write it."""
        with self._lock:
            self.collections[collection][doc_id] = dict(data)

    # users

    def save_user(self, user: UserProfile) -> UserProfile:
        self._write(UserDocument, USERS, user.user_id, user)
        return user

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        raw = self._read(USERS, user_id)
        if raw is None:
            return None
        return self._validate(UserDocument, USERS, user_id, raw).to_domain(user_id)

    def find_user_by_email(self, email: str) -> Optional[UserProfile]:
        wanted = email.strip().lower()
        with self._lock:
            items = list(self.collections[USERS].items())
        for user_id, raw in items:
            if str(raw.get("email", "")).lower() == wanted:
                return self._validate(UserDocument, USERS, user_id, raw).to_domain(user_id)
        return None

    def update_user(self, user_id: str, **fields) -> UserProfile:
        with self._lock:
            user = self.get_user(user_id)
            if user is None:
                raise RepositoryError(f"User {user_id} not found")
            for name, value in fields.items():
                setattr(user, name, value)
            return self.save_user(user)

    # trips

    def create_trip(self, trip: Trip) -> Trip:
        if not trip.trip_id:
            trip.trip_id = str(uuid4())
        self._write(TripDocument, TRIPS, trip.trip_id, trip)
        return trip

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        raw = self._read(TRIPS, trip_id)
        if raw is None:
            return None
        return self._validate(TripDocument, TRIPS, trip_id, raw).to_domain(trip_id)

    def query_trips(self, driver_id: Optional[str] = None) -> List[Trip]:
        with self._lock:
            items = list(self.collections[TRIPS].items())
        trips = [
            self._validate(TripDocument, TRIPS, trip_id, raw).to_domain(trip_id)
            for trip_id, raw in items
        ]
        if driver_id is not None:
            trips = [t for t in trips if t.driver_id == driver_id]
        return trips

    def increment_trip(self, trip_id: str, field: str, delta: int) -> Trip:
        """Atomically add ``delta`` to a numeric trip field."""
        key = COUNTER_FIELDS.get(field)
        if key is None:
            raise RepositoryError(f"Field {field!r} cannot be incremented")
        with self._lock:
            raw = self._read(TRIPS, trip_id)
            if raw is None:
                raise TripNotFoundError()
            current = self._validate(TripDocument, TRIPS, trip_id, raw)
            updated = dict(raw)
            updated[key] = getattr(current, field) + delta
            if updated[key] < 0:
                raise RepositoryError(
                    f"{key} of trip {trip_id} cannot go below zero ({updated[key]})"
                )
            document = self._validate(TripDocument, TRIPS, trip_id, updated)
            self.collections[TRIPS][trip_id] = updated
            return document.to_domain(trip_id)

    def delete_trip(self, trip_id: str) -> bool:
        with self._lock:
            return self.collections[TRIPS].pop(trip_id, None) is not None

    # bookings

    def create_booking(self, booking: Booking) -> Booking:
        if not booking.booking_id:
            booking.booking_id = str(uuid4())
        self._write(BookingDocument, BOOKINGS, booking.booking_id, booking)
        return booking

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        raw = self._read(BOOKINGS, booking_id)
        if raw is None:
            return None
        return self._validate(BookingDocument, BOOKINGS, booking_id, raw).to_domain(booking_id)

    def query_bookings(
        self,
        trip_id: Optional[str] = None,
        passenger_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        with self._lock:
            items = list(self.collections[BOOKINGS].items())
        bookings = [
            self._validate(BookingDocument, BOOKINGS, booking_id, raw).to_domain(booking_id)
            for booking_id, raw in items
        ]
        if trip_id is not None:
            bookings = [b for b in bookings if b.trip_id == trip_id]
        if passenger_id is not None:
            bookings = [b for b in bookings if b.passenger_id == passenger_id]
        if status is not None:
            bookings = [b for b in bookings if b.status == status]
        return bookings

    def delete_booking(self, booking_id: str) -> bool:
        with self._lock:
            return self.collections[BOOKINGS].pop(booking_id, None) is not None

    def _read(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            raw = self.collections[collection].get(doc_id)
        return dict(raw) if raw is not None else None

    def _write(self, model, collection: str, doc_id: str, obj) -> None:
        try:
            document = model.from_domain(obj)
        except ValidationError as exc:
            logger.error("Rejected %s document %s: %s", collection, doc_id, exc)
            raise RepositoryError(f"Invalid {collection} document {doc_id}") from exc
        with self._lock:
            self.collections[collection][doc_id] = document.to_document()

    @staticmethod
    def _validate(model, collection: str, doc_id: str, raw: dict):
        try:
            return model.model_validate(raw)
        except ValidationError as exc:
            logger.error("Malformed %s document %s: %s", collection, doc_id, exc)
            raise RepositoryError(f"Malformed {collection} document {doc_id}") from exc
