import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from yoon.core.config import settings
from yoon.core.errors import InvalidTripError, TripNotFoundError
from yoon.models.domain import Trip, TripStatus
from yoon.models.fields import parse_trip_date, parse_trip_time
from yoon.services.identity import SessionIdentity
from yoon.storage.repository import TripRepository, UserRepository

logger = logging.getLogger(__name__)


class TripService:
    def __init__(self, trips: TripRepository, users: UserRepository, identity: SessionIdentity):
        self.trips = trips
        self.users = users
        self.identity = identity

    def publish_trip(
        self,
        departure: str,
        destination: str,
        date,
        time,
        price,
        seats,
    ) -> Trip:
        departure = (departure or "").strip()
        destination = (destination or "").strip()
        if not departure or not destination or price in (None, "") or seats in (None, ""):
            raise InvalidTripError()

        price_value = self._parse_price(price)
        seats_value = self._parse_seats(seats)
        try:
            trip_date = parse_trip_date(date)
            trip_time = parse_trip_time(time)
        except ValueError as exc:
            raise InvalidTripError(str(exc), message="Date ou heure invalide") from exc

        driver = self.identity.require_user()
        profile = self.users.get_user(driver.user_id)

        trip = Trip(
            trip_id="",
            departure=departure,
            destination=destination,
            date=trip_date,
            time=trip_time,
            price=price_value,
            available_seats=seats_value,
            driver_id=driver.user_id,
            driver_name=(profile.name if profile and profile.name else "Utilisateur"),
            driver_rating=(profile.rating if profile else 0.0),
            driver_trips_count=(profile.trips_count if profile else 0),
            status=TripStatus.active,
            created_at=datetime.now(timezone.utc),
        )
        self.trips.create_trip(trip)
        logger.info(
            "Trip %s published by %s (%s -> %s, %d seats)",
            trip.trip_id,
            trip.driver_id,
            trip.departure,
            trip.destination,
            trip.available_seats,
        )
        return trip

    def get_trip(self, trip_id: str) -> Trip:
        trip = self.trips.get_trip(trip_id)
        if trip is None:
            raise TripNotFoundError()
        return trip

    def search_trips(
        self, departure: Optional[str] = None, destination: Optional[str] = None
    ) -> List[Trip]:
        """Case-insensitive substring match on departure and destination."""
        results = self.trips.query_trips()
        departure = (departure or "").strip().lower()
        destination = (destination or "").strip().lower()
        if departure:
            results = [t for t in results if departure in t.departure.lower()]
        if destination:
            results = [t for t in results if destination in t.destination.lower()]
        return results

    def list_driver_trips(self, driver_id: str) -> List[Trip]:
        trips = self.trips.query_trips(driver_id=driver_id)
        return sorted(trips, key=lambda t: t.created_at, reverse=True)

    @staticmethod
    def _parse_price(raw) -> float:
        if isinstance(raw, bool):
            raise InvalidTripError(message="Le prix doit être un nombre valide")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise InvalidTripError(message="Le prix doit être un nombre valide")
        if not math.isfinite(value) or value <= 0:
            raise InvalidTripError(message="Le prix doit être un nombre valide")
        return value

    @staticmethod
    def _parse_seats(raw) -> int:
        limit = settings.max_seats_per_trip
        error = InvalidTripError(message=f"Le nombre de places doit être entre 1 et {limit}")
        if isinstance(raw, bool):
            raise error
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise error
        if value <= 0 or value > limit:
            raise error
        return value
