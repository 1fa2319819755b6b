from datetime import datetime
from typing import Optional
from bson import ObjectId
from pymongo.database import Database
from carrental.config import BOOKING_COLLECTION
from carrental.models.booking.booking import BLOCKING_STATUSES


class BookingConflictChecker:
    """Finds bookings that occupy a vehicle during a date range.

    Bounds are inclusive: a booking that starts on the instant another one
    ends still conflicts with it.
    """

    def __init__(self, db: Database):
        self.bookings = db[BOOKING_COLLECTION]

    def conflict_query(self, vehicle_id: ObjectId, start_date: datetime, end_date: datetime,
                       exclude_booking_id: Optional[ObjectId] = None) -> dict:
        query = {
            "vehicle_id": vehicle_id,
            "status": {"$in": list(BLOCKING_STATUSES)},
            "start_date": {"$lte": end_date},
            "end_date": {"$gte": start_date},
        }
        if exclude_booking_id is not None:
            query["_id"] = {"$ne": exclude_booking_id}
        return query

    def find_conflict(self, vehicle_id: ObjectId, start_date: datetime, end_date: datetime,
                      exclude_booking_id: Optional[ObjectId] = None) -> Optional[dict]:
        return self.bookings.find_one(
            self.conflict_query(vehicle_id, start_date, end_date, exclude_booking_id)
        )

    def has_conflict(self, vehicle_id: ObjectId, start_date: datetime, end_date: datetime,
                     exclude_booking_id: Optional[ObjectId] = None) -> bool:
        return self.find_conflict(vehicle_id, start_date, end_date, exclude_booking_id) is not None
