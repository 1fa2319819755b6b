import logging
from typing import Iterable, List, Optional, Tuple
from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from carrental.config import (
    BOOKING_COLLECTION,
    RELEASE_STOCK_ON_COMPLETE,
    RELEASE_STOCK_ON_REJECT,
    SERVICE_COLLECTION,
)
from carrental.models.activity.activity import ActivityType
from carrental.models.booking.booking import (
    BookingStatus,
    CreateBooking,
    PaymentStatus,
    UpdateBookingStatus,
    sources_for,
)
from carrental.services.activity import record_activity
from carrental.services.conflicts import BookingConflictChecker
from carrental.services.inventory import CarInventory
from carrental.utilities.convert_object_id import objid
from carrental.utilities.errors import BookingConflictError, ForbiddenError, NotFoundError, ValidationError
from carrental.utilities.helper import booking_total, rental_days, to_utc_naive, utcnow
from carrental.utilities.security import is_admin, is_owner_or_admin

logger = logging.getLogger(__name__)

VEHICLE_SUMMARY_FIELDS = {"name": 1, "brand": 1, "model": 1, "year": 1, "photos": 1, "price_per_day": 1, "transmission": 1}

# a booking entering one of these no longer owes a unit back to the car
TERMINAL_STATUSES = (BookingStatus.CANCELLED, BookingStatus.COMPLETED)


class BookingService:
    """Booking lifecycle coupled to car stock.

    There is no transaction spanning the booking and car documents. A booking
    carries ``stock_held`` while its unit can still be handed back; every
    terminal transition clears the flag in the same conditional update that
    changes the booking, so stock is handed back at most once.

    Cancel and delete restore the unit. Reject and completion keep it
    committed unless ``release_on_reject`` / ``release_on_complete`` are set.
    """

    def __init__(
        self,
        db: Database,
        release_on_reject: bool = RELEASE_STOCK_ON_REJECT,
        release_on_complete: bool = RELEASE_STOCK_ON_COMPLETE,
    ):
        self.db = db
        self.bookings = db[BOOKING_COLLECTION]
        self.catalog = db[SERVICE_COLLECTION]
        self.inventory = CarInventory(db)
        self.conflicts = BookingConflictChecker(db)
        self.release_on_reject = release_on_reject
        self.release_on_complete = release_on_complete

    # Lookups

    def get(self, booking_id) -> dict:
        booking = self.bookings.find_one({"_id": objid(booking_id, "booking")})
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def get_for_user(self, booking_id, current_user: dict) -> dict:
        booking = self.get(booking_id)
        if not is_owner_or_admin(current_user, booking["user_id"]):
            raise ForbiddenError("Not authorized to access this booking")
        return self.with_vehicles([booking])[0]

    def list(self, current_user: dict, skip: int = 0, limit: int = 0) -> Tuple[list, int]:
        query = {} if is_admin(current_user) else {"user_id": objid(current_user["user_id"], "user")}
        return self._find(query, skip, limit)

    def list_for_user(self, user_id: str, current_user: dict, skip: int = 0, limit: int = 0) -> Tuple[list, int]:
        if not is_owner_or_admin(current_user, user_id):
            raise ForbiddenError("You are not authorized to view these bookings")
        return self._find({"user_id": objid(user_id, "user")}, skip, limit)

    def _find(self, query: dict, skip: int, limit: int) -> Tuple[list, int]:
        total = self.bookings.count_documents(query)
        cursor = self.bookings.find(query).sort("created_at", DESCENDING).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return self.with_vehicles(list(cursor)), total

    def with_vehicles(self, bookings: List[dict]) -> List[dict]:
        vehicle_ids = list({b["vehicle_id"] for b in bookings})
        if not vehicle_ids:
            return bookings
        cars = {
            car["_id"]: car
            for car in self.inventory.cars.find({"_id": {"$in": vehicle_ids}}, VEHICLE_SUMMARY_FIELDS)
        }
        return [{**b, "vehicle": cars.get(b["vehicle_id"])} for b in bookings]

    # Create

    def create(self, current_user: dict, data: CreateBooking) -> dict:
        user_id = objid(current_user["user_id"], "user")
        vehicle_id = objid(data.vehicle_id, "vehicle")
        start_date, end_date = to_utc_naive(data.start_date), to_utc_naive(data.end_date)
        if end_date <= start_date:
            raise ValidationError("End date must be after start date")

        car = self.inventory.find_by_id(vehicle_id)
        if not car:
            raise NotFoundError("Vehicle not found")
        if not car.get("availability"):
            raise BookingConflictError("Vehicle is not available for booking", code="VEHICLE_UNAVAILABLE")
        if car.get("stock", 0) <= 0:
            raise BookingConflictError("This car is out of stock", code="OUT_OF_STOCK")
        if self.conflicts.has_conflict(vehicle_id, start_date, end_date):
            raise BookingConflictError()

        services = self._snapshot_services(s.service_id for s in data.additional_services)
        days = rental_days(start_date, end_date)
        total_amount = booking_total(car["price_per_day"], days, [s["price"] for s in services])

        taken = self.inventory.decrement_stock(vehicle_id)
        if taken is None:
            raise BookingConflictError("This car is out of stock", code="OUT_OF_STOCK")

        now = utcnow()
        booking = {
            "user_id": user_id,
            "vehicle_id": vehicle_id,
            "start_date": start_date,
            "end_date": end_date,
            "rental_days": days,
            "total_amount": total_amount,
            "additional_services": services,
            "extras": data.extras,
            "pickup_location": data.pickup_location.model_dump(),
            "dropoff_location": data.dropoff_location.model_dump(),
            "status": BookingStatus.PENDING.value,
            "payment_status": PaymentStatus.PENDING.value,
            "stock_held": True,
            "created_at": now,
            "updated_at": now,
        }
        try:
            if taken["stock"] <= 0:
                self.inventory.close_if_sold_out(vehicle_id)
            result = self.bookings.insert_one(booking)
            booking["_id"] = result.inserted_id
            # a concurrent request may have committed overlapping dates since the first check
            if self.conflicts.has_conflict(vehicle_id, start_date, end_date, exclude_booking_id=booking["_id"]):
                self.bookings.delete_one({"_id": booking["_id"]})
                raise BookingConflictError()
        except Exception:
            self._release_stock(vehicle_id)
            raise

        logger.info("Booking %s created for car %s by user %s", booking["_id"], vehicle_id, user_id)
        record_activity(
            self.db, user_id, ActivityType.BOOKING,
            f"Booked {car.get('name', 'a car')} for {days} day(s)",
            {"booking_id": str(booking["_id"]), "vehicle_id": str(vehicle_id), "total_amount": total_amount},
        )
        booking["vehicle"] = {k: car.get(k) for k in VEHICLE_SUMMARY_FIELDS}
        booking["vehicle"]["_id"] = vehicle_id
        return booking

    def _snapshot_services(self, service_ids: Iterable[str]) -> List[dict]:
        ids = []
        for service_id in service_ids:
            oid = objid(service_id, "service")
            if oid not in ids:
                ids.append(oid)
        if not ids:
            return []

        found = {s["_id"]: s for s in self.catalog.find({"_id": {"$in": ids}, "is_active": True})}
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise ValidationError(f"Unknown or inactive additional service(s): {', '.join(missing)}")
        return [
            {"service_id": i, "name": found[i]["name"], "price": found[i]["price"]}
            for i in ids
        ]

    # Transitions

    def cancel(self, booking_id, current_user: dict) -> dict:
        booking = self.get(booking_id)
        if not is_owner_or_admin(current_user, booking["user_id"]):
            raise ForbiddenError("Not authorized to cancel this booking")
        self._check_not_started(booking, current_user)
        return self._transition(booking["_id"], BookingStatus.CANCELLED)

    def approve(self, booking_id) -> dict:
        return self._transition(objid(booking_id, "booking"), BookingStatus.ACTIVE, [BookingStatus.PENDING.value])

    def reject(self, booking_id) -> dict:
        return self._transition(
            objid(booking_id, "booking"),
            BookingStatus.CANCELLED,
            [BookingStatus.PENDING.value],
            release=self.release_on_reject,
        )

    @staticmethod
    def _check_not_started(booking: dict, current_user: dict) -> None:
        # customers may only back out of bookings that have not begun
        if not is_admin(current_user) and booking["start_date"] <= utcnow():
            raise ValidationError("Cannot modify or cancel active or past bookings", code="INVALID_TRANSITION")

    def update(self, booking_id, data: UpdateBookingStatus, current_user: dict) -> dict:
        booking = self.get(booking_id)
        if not is_owner_or_admin(current_user, booking["user_id"]):
            raise ForbiddenError("Not authorized to update this booking")

        if not is_admin(current_user):
            if data.payment_status is not None:
                raise ForbiddenError("Only admins can change the payment status")
            if data.status != BookingStatus.CANCELLED:
                raise ValidationError("You can only cancel your booking", code="INVALID_TRANSITION")
            self._check_not_started(booking, current_user)

        result = booking
        if data.status is not None:
            result = self._transition(booking["_id"], data.status)
        if data.payment_status is not None:
            result = self.bookings.find_one_and_update(
                {"_id": booking["_id"]},
                {"$set": {"payment_status": data.payment_status.value, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
            if result is None:
                raise NotFoundError("Booking not found")
        return result

    def _transition(
        self,
        booking_id: ObjectId,
        target: BookingStatus,
        sources: Optional[List[str]] = None,
        release: Optional[bool] = None,
    ) -> dict:
        sources = sources or sources_for(target)
        fields = {"status": target.value, "updated_at": utcnow()}
        if release is None:
            release = target == BookingStatus.CANCELLED or (
                target == BookingStatus.COMPLETED and self.release_on_complete
            )
        if target in TERMINAL_STATUSES:
            fields["stock_held"] = False

        before = self.bookings.find_one_and_update(
            {"_id": booking_id, "status": {"$in": sources}},
            {"$set": fields},
            return_document=ReturnDocument.BEFORE,
        )
        if before is None:
            current = self.bookings.find_one({"_id": booking_id}, {"status": 1})
            if current is None:
                raise NotFoundError("Booking not found")
            raise ValidationError(
                f"Cannot change a {current['status']} booking to {target.value}",
                code="INVALID_TRANSITION",
            )

        logger.info("Booking %s moved from %s to %s", booking_id, before["status"], target.value)
        if release and before.get("stock_held"):
            self._release_stock(before["vehicle_id"])
        return {**before, **fields}

    # Delete

    def delete(self, booking_id, current_user: dict) -> dict:
        booking = self.get(booking_id)
        if not is_owner_or_admin(current_user, booking["user_id"]):
            raise ForbiddenError("Not authorized to delete this booking")

        deleted = self.bookings.find_one_and_delete({"_id": booking["_id"]})
        if deleted is None:
            raise NotFoundError("Booking not found")

        logger.info("Booking %s deleted by user %s", deleted["_id"], current_user["user_id"])
        if deleted.get("stock_held"):
            self._release_stock(deleted["vehicle_id"])
        return deleted

    def _release_stock(self, vehicle_id: ObjectId) -> None:
        try:
            self.inventory.increment_stock(vehicle_id)
        except Exception:
            logger.exception("Failed to restore stock for car %s", vehicle_id)
