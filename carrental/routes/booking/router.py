import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pymongo.database import Database
from carrental.database.db import get_database
from carrental.models.booking.booking import CreateBooking, UpdateBookingStatus
from carrental.services.bookings import BookingService
from carrental.services.json import return_json
from carrental.utilities.errors import InternalError
from carrental.utilities.helper import page_info
from carrental.utilities.security import get_current_user, require_admin

logger = logging.getLogger(__name__)

booking_router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"],
)


def get_booking_service(db: Database = Depends(get_database)) -> BookingService:
    return BookingService(db)


# List bookings (own bookings unless admin)
@booking_router.get("")
def list_bookings(
    current_user: dict = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    try:
        bookings, total = service.list(current_user, skip=(page - 1) * limit, limit=limit)
        return return_json(message="Bookings fetched successfully", data=bookings, page_info=page_info(page, limit, total))

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list bookings")
        raise InternalError("Failed to fetch bookings")


# List a user's bookings (owner or admin)
@booking_router.get("/user/{user_id}")
def list_user_bookings(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    try:
        bookings, total = service.list_for_user(user_id, current_user, skip=(page - 1) * limit, limit=limit)
        return return_json(message="Bookings fetched successfully", data=bookings, page_info=page_info(page, limit, total))

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list bookings for user %s", user_id)
        raise InternalError("Failed to fetch bookings")


# Get booking by id
@booking_router.get("/{booking_id}")
def get_booking(
    booking_id: str,
    current_user: dict = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = service.get_for_user(booking_id, current_user)
        return return_json(message="Booking fetched successfully", data=booking)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to fetch booking %s", booking_id)
        raise InternalError("Failed to fetch booking")


# Create booking
@booking_router.post("")
def create_booking(
    data: CreateBooking,
    current_user: dict = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = service.create(current_user, data)
        return return_json(message="Booking created successfully", data=booking, code=status.HTTP_201_CREATED)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to create booking")
        raise InternalError("Failed to create booking")


# Update booking status (admin: any valid transition, owner: cancel only)
@booking_router.put("/{booking_id}")
def update_booking(
    booking_id: str,
    data: UpdateBookingStatus,
    current_user: dict = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = service.update(booking_id, data, current_user)
        return return_json(message="Booking updated successfully", data=booking)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to update booking %s", booking_id)
        raise InternalError("Failed to update booking")


# Cancel booking (owner or admin)
@booking_router.put("/{booking_id}/cancel")
def cancel_booking(
    booking_id: str,
    current_user: dict = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = service.cancel(booking_id, current_user)
        return return_json(message="Booking cancelled successfully", data=booking)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to cancel booking %s", booking_id)
        raise InternalError("Failed to cancel booking")


# Admin approve booking
@booking_router.put("/{booking_id}/approve")
def approve_booking(
    booking_id: str,
    current_user: dict = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = service.approve(booking_id)
        return return_json(message="Booking approved successfully", data=booking)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to approve booking %s", booking_id)
        raise InternalError("Failed to approve booking")


# Admin reject booking
@booking_router.put("/{booking_id}/reject")
def reject_booking(
    booking_id: str,
    current_user: dict = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = service.reject(booking_id)
        return return_json(message="Booking rejected successfully", data=booking)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to reject booking %s", booking_id)
        raise InternalError("Failed to reject booking")


# Delete booking (owner or admin)
@booking_router.delete("/{booking_id}")
def delete_booking(
    booking_id: str,
    current_user: dict = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    try:
        deleted = service.delete(booking_id, current_user)
        return return_json(message="Booking deleted successfully", data={"_id": deleted["_id"]})

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to delete booking %s", booking_id)
        raise InternalError("Failed to delete booking")
