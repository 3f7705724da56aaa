from fastapi import APIRouter, Depends

from yoon.api import get_booking_service
from yoon.core.config import settings
from yoon.models.schemas import MyBookingsResponse, PassengerBookingSchema, ShareResponse
from yoon.services.booking_service import BookingService, booking_share_message

router = APIRouter()


@router.get("/mine", response_model=MyBookingsResponse)
def my_bookings(service: BookingService = Depends(get_booking_service)) -> MyBookingsResponse:
    entries = service.list_passenger_bookings()
    return MyBookingsResponse(bookings=[PassengerBookingSchema.from_domain(e) for e in entries])


@router.delete("/{booking_id}", status_code=204)
def cancel_booking(
    booking_id: str, service: BookingService = Depends(get_booking_service)
) -> None:
    service.cancel_booking(booking_id)


@router.get("/{booking_id}/share", response_model=ShareResponse)
def share_booking(
    booking_id: str, service: BookingService = Depends(get_booking_service)
) -> ShareResponse:
    entry = service.get_passenger_booking(booking_id)
    return ShareResponse(message=booking_share_message(entry, currency=settings.currency))
