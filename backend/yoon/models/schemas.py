from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from yoon.models.domain import (
    Booking,
    BookingStatus,
    PassengerBooking,
    Trip,
    TripAggregates,
    TripPassengers,
    TripStatus,
    TripSummary,
    UserProfile,
)


class SignUpRequest(BaseModel):
    name: str
    email: str
    phone: str
    password: str


class SignInRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    token: str
    user: "UserSchema"


class PushTokenRequest(BaseModel):
    push_token: str = Field(min_length=1)


class UserSchema(BaseModel):
    user_id: str
    name: str
    email: str
    phone: str
    rating: float
    trips_count: int
    verified: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, obj: UserProfile) -> "UserSchema":
        return cls(
            user_id=obj.user_id,
            name=obj.name,
            email=obj.email,
            phone=obj.phone,
            rating=obj.rating,
            trips_count=obj.trips_count,
            verified=obj.verified,
            created_at=obj.created_at,
        )


class TripCreate(BaseModel):
    # Raw values; TripService validates them and reports localized errors.
    departure: str = ""
    destination: str = ""
    date: str = ""
    time: str = ""
    price: Any = None
    seats: Any = None


class TripSchema(BaseModel):
    trip_id: str
    departure: str
    destination: str
    date: date
    time: str
    price: float
    available_seats: int
    driver_id: str
    driver_name: str
    driver_rating: float
    driver_trips_count: int
    status: TripStatus
    created_at: datetime

    @classmethod
    def from_domain(cls, obj: Trip) -> "TripSchema":
        return cls(
            trip_id=obj.trip_id,
            departure=obj.departure,
            destination=obj.destination,
            date=obj.date,
            time=obj.time,
            price=obj.price,
            available_seats=obj.available_seats,
            driver_id=obj.driver_id,
            driver_name=obj.driver_name,
            driver_rating=obj.driver_rating,
            driver_trips_count=obj.driver_trips_count,
            status=obj.status,
            created_at=obj.created_at,
        )


class TripListResponse(BaseModel):
    trips: List[TripSchema]


class BookingCreate(BaseModel):
    # Validated by parse_seat_count.
    seats: Any = 1


class BookingSchema(BaseModel):
    booking_id: str
    trip_id: str
    passenger_id: str
    passenger_name: str
    passenger_phone: str
    driver_id: str
    seats_booked: int
    total_price: float
    status: BookingStatus
    created_at: datetime

    @classmethod
    def from_domain(cls, obj: Booking) -> "BookingSchema":
        return cls(
            booking_id=obj.booking_id,
            trip_id=obj.trip_id,
            passenger_id=obj.passenger_id,
            passenger_name=obj.passenger_name,
            passenger_phone=obj.passenger_phone,
            driver_id=obj.driver_id,
            seats_booked=obj.seats_booked,
            total_price=obj.total_price,
            status=obj.status,
            created_at=obj.created_at,
        )


class TripSummarySchema(BaseModel):
    departure: str
    destination: str
    date: date
    time: str
    driver_name: str

    @classmethod
    def from_domain(cls, obj: TripSummary) -> "TripSummarySchema":
        return cls(
            departure=obj.departure,
            destination=obj.destination,
            date=obj.date,
            time=obj.time,
            driver_name=obj.driver_name,
        )


class PassengerBookingSchema(BaseModel):
    booking: BookingSchema
    trip: Optional[TripSummarySchema] = None

    @classmethod
    def from_domain(cls, obj: PassengerBooking) -> "PassengerBookingSchema":
        return cls(
            booking=BookingSchema.from_domain(obj.booking),
            trip=TripSummarySchema.from_domain(obj.trip) if obj.trip else None,
        )


class MyBookingsResponse(BaseModel):
    bookings: List[PassengerBookingSchema]


class ShareResponse(BaseModel):
    message: str


class TripAggregatesSchema(BaseModel):
    passenger_count: int
    total_seats_booked: int
    total_revenue: float

    @classmethod
    def from_domain(cls, obj: TripAggregates) -> "TripAggregatesSchema":
        return cls(
            passenger_count=obj.passenger_count,
            total_seats_booked=obj.total_seats_booked,
            total_revenue=obj.total_revenue,
        )


class TripPassengersResponse(BaseModel):
    trip: TripSchema
    passengers: List[BookingSchema]
    aggregates: TripAggregatesSchema

    @classmethod
    def from_domain(cls, obj: TripPassengers) -> "TripPassengersResponse":
        return cls(
            trip=TripSchema.from_domain(obj.trip),
            passengers=[BookingSchema.from_domain(b) for b in obj.bookings],
            aggregates=TripAggregatesSchema.from_domain(obj.aggregates),
        )


SessionResponse.model_rebuild()
