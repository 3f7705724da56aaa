"""Stored document shapes for the ``users``, ``trips`` and ``bookings`` collections.

Documents use the camelCase field names of the document store. Every read
and write goes through these models so a malformed record fails at the
repository boundary instead of leaking partial data to callers.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from yoon.models.domain import Booking, BookingStatus, Trip, TripStatus, UserProfile
from yoon.models.fields import parse_trip_date, parse_trip_time


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class UserDocument(_Document):
    name: str
    email: str
    phone: str = ""
    rating: float = Field(0.0, ge=0, le=5)
    trips_count: int = Field(0, ge=0, alias="tripsCount")
    verified: bool = False
    push_token: Optional[str] = Field(None, alias="pushToken")
    last_token_update: Optional[datetime] = Field(None, alias="lastTokenUpdate")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, obj: UserProfile) -> "UserDocument":
        return cls(
            name=obj.name,
            email=obj.email,
            phone=obj.phone,
            rating=obj.rating,
            trips_count=obj.trips_count,
            verified=obj.verified,
            push_token=obj.push_token,
            last_token_update=obj.last_token_update,
            created_at=obj.created_at,
        )

    def to_domain(self, user_id: str) -> UserProfile:
        return UserProfile(
            user_id=user_id,
            name=self.name,
            email=self.email,
            phone=self.phone,
            rating=self.rating,
            trips_count=self.trips_count,
            verified=self.verified,
            push_token=self.push_token,
            last_token_update=self.last_token_update,
            created_at=self.created_at,
        )


class TripDocument(_Document):
    departure: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    date: date
    time: str
    price: float = Field(gt=0)
    available_seats: int = Field(ge=0, alias="availableSeats")
    driver_id: str = Field(min_length=1, alias="driverId")
    driver_name: str = Field(alias="driverName")
    driver_rating: float = Field(0.0, alias="driverRating")
    driver_trips_count: int = Field(0, alias="driverTripsCount")
    status: TripStatus = TripStatus.active
    created_at: datetime = Field(alias="createdAt")

    @field_validator("date", mode="before")
    @classmethod
    def _canonical_date(cls, value):
        return parse_trip_date(value)

    @field_validator("time", mode="before")
    @classmethod
    def _canonical_time(cls, value):
        return parse_trip_time(value)

    @classmethod
    def from_domain(cls, obj: Trip) -> "TripDocument":
        return cls(
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

    def to_domain(self, trip_id: str) -> Trip:
        return Trip(
            trip_id=trip_id,
            departure=self.departure,
            destination=self.destination,
            date=self.date,
            time=self.time,
            price=self.price,
            available_seats=self.available_seats,
            driver_id=self.driver_id,
            driver_name=self.driver_name,
            driver_rating=self.driver_rating,
            driver_trips_count=self.driver_trips_count,
            status=self.status,
            created_at=self.created_at,
        )


class BookingDocument(_Document):
    trip_id: str = Field(min_length=1, alias="tripId")
    passenger_id: str = Field(min_length=1, alias="passengerId")
    passenger_name: str = Field(alias="passengerName")
    passenger_phone: str = Field("", alias="passengerPhone")
    driver_id: str = Field(alias="driverId")
    seats_booked: int = Field(gt=0, alias="seatsBooked")
    total_price: float = Field(ge=0, alias="totalPrice")
    status: BookingStatus = BookingStatus.confirmed
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, obj: Booking) -> "BookingDocument":
        return cls(
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

    def to_domain(self, booking_id: str) -> Booking:
        return Booking(
            booking_id=booking_id,
            trip_id=self.trip_id,
            passenger_id=self.passenger_id,
            passenger_name=self.passenger_name,
            passenger_phone=self.passenger_phone,
            driver_id=self.driver_id,
            seats_booked=self.seats_booked,
            total_price=self.total_price,
            status=self.status,
            created_at=self.created_at,
        )
