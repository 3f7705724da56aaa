from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends

from yoon.api import get_booking_service, get_trip_service
from yoon.models.schemas import (
    BookingCreate,
    BookingSchema,
    TripAggregatesSchema,
    TripCreate,
    TripListResponse,
    TripPassengersResponse,
    TripSchema,
)
from yoon.services.booking_service import BookingService
from yoon.services.trip_service import TripService

router = APIRouter()


@router.get("", response_model=TripListResponse)
def search_trips(
    departure: Optional[str] = None,
    destination: Optional[str] = None,
    service: TripService = Depends(get_trip_service),
) -> TripListResponse:
    trips = service.search_trips(departure=departure, destination=destination)
    return TripListResponse(trips=[TripSchema.from_domain(t) for t in trips])


@router.post("", response_model=TripSchema, status_code=201)
def publish_trip(
    payload: TripCreate,
    service: TripService = Depends(get_trip_service),
) -> TripSchema:
    trip = service.publish_trip(
        departure=payload.departure,
        destination=payload.destination,
        date=payload.date,
        time=payload.time,
        price=payload.price,
        seats=payload.seats,
    )
    return TripSchema.from_domain(trip)


@router.get("/mine", response_model=TripListResponse)
def my_trips(service: TripService = Depends(get_trip_service)) -> TripListResponse:
    driver = service.identity.require_user()
    trips = service.list_driver_trips(driver.user_id)
    return TripListResponse(trips=[TripSchema.from_domain(t) for t in trips])


@router.get("/{trip_id}", response_model=TripSchema)
def get_trip(trip_id: str, service: TripService = Depends(get_trip_service)) -> TripSchema:
    return TripSchema.from_domain(service.get_trip(trip_id))


@router.delete("/{trip_id}", status_code=204)
def delete_trip(trip_id: str, service: BookingService = Depends(get_booking_service)) -> None:
    service.delete_trip(trip_id)


@router.get("/{trip_id}/passengers", response_model=TripPassengersResponse)
def trip_passengers(
    trip_id: str, service: BookingService = Depends(get_booking_service)
) -> TripPassengersResponse:
    return TripPassengersResponse.from_domain(service.list_trip_passengers(trip_id))


@router.get("/{trip_id}/aggregates", response_model=TripAggregatesSchema)
def trip_aggregates(
    trip_id: str, service: BookingService = Depends(get_booking_service)
) -> TripAggregatesSchema:
    return TripAggregatesSchema.from_domain(service.compute_trip_aggregates(trip_id))


@router.post("/{trip_id}/bookings", response_model=BookingSchema, status_code=201)
def book_trip(
    trip_id: str,
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
) -> BookingSchema:
    booking = service.create_booking(trip_id, payload.seats, notify=False)
    background_tasks.add_task(service.notify_driver, booking)
    return BookingSchema.from_domain(booking)
