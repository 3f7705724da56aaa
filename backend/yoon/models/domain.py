from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class TripStatus(str, Enum):
    active = "active"


class BookingStatus(str, Enum):
    confirmed = "confirmed"


@dataclass
class UserProfile:
    user_id: str
    name: str
    email: str
    phone: str
    created_at: datetime
    rating: float = 0.0
    trips_count: int = 0
    verified: bool = False
    push_token: Optional[str] = None
    last_token_update: Optional[datetime] = None


@dataclass
class Trip:
    trip_id: str
    departure: str
    destination: str
    date: date
    time: str
    price: float
    available_seats: int
    driver_id: str
    driver_name: str
    created_at: datetime
    driver_rating: float = 0.0
    driver_trips_count: int = 0
    status: TripStatus = TripStatus.active


@dataclass
class Booking:
    booking_id: str
    trip_id: str
    passenger_id: str
    passenger_name: str
    passenger_phone: str
    driver_id: str
    seats_booked: int
    total_price: float
    created_at: datetime
    status: BookingStatus = BookingStatus.confirmed


@dataclass
class TripAggregates:
    passenger_count: int = 0
    total_seats_booked: int = 0
    total_revenue: float = 0.0


@dataclass
class TripSummary:
    departure: str
    destination: str
    date: date
    time: str
    driver_name: str


@dataclass
class PassengerBooking:
    booking: Booking
    trip: Optional[TripSummary] = None


@dataclass
class TripPassengers:
    trip: Trip
    bookings: list = field(default_factory=list)
    aggregates: TripAggregates = field(default_factory=TripAggregates)
