import logging
from typing import Optional, Tuple
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database
from carrental.config import CAR_COLLECTION, BOOKING_COLLECTION
from carrental.utilities.errors import ConflictError, NotFoundError, ValidationError
from carrental.utilities.helper import utcnow

logger = logging.getLogger(__name__)


class CarInventory:
    """Data access for car documents.

    Stock mutations are single conditional updates so concurrent requests
    cannot push stock below zero or leave availability on with no units.
    """

    def __init__(self, db: Database):
        self.cars = db[CAR_COLLECTION]
        self.bookings = db[BOOKING_COLLECTION]

    def find_by_id(self, car_id: ObjectId) -> Optional[dict]:
        return self.cars.find_one({"_id": car_id})

    def get(self, car_id: ObjectId) -> dict:
        car = self.find_by_id(car_id)
        if not car:
            raise NotFoundError("Car not found")
        return car

    def list_available(self, include_unavailable: bool = False, skip: int = 0, limit: int = 0) -> Tuple[list, int]:
        query = {} if include_unavailable else {"stock": {"$gt": 0}, "availability": True}
        total = self.cars.count_documents(query)
        cursor = self.cars.find(query).sort("created_at", -1).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor), total

    def decrement_stock(self, car_id: ObjectId) -> Optional[dict]:
        """Take one unit; returns the updated car or None when none was available.

        Callers follow up with ``close_if_sold_out`` when the returned stock is 0.
        """
        car = self.cars.find_one_and_update(
            {"_id": car_id, "stock": {"$gt": 0}, "availability": True},
            {"$inc": {"stock": -1}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if car is None:
            return None
        logger.info("Stock for car %s decremented to %s", car_id, car["stock"])
        return car

    def close_if_sold_out(self, car_id: ObjectId) -> bool:
        """Switch availability off once the last unit is taken."""
        result = self.cars.update_one(
            {"_id": car_id, "stock": {"$lte": 0}, "availability": True},
            {"$set": {"availability": False, "updated_at": utcnow()}},
        )
        return result.modified_count > 0

    def increment_stock(self, car_id: ObjectId) -> Optional[dict]:
        car = self.cars.find_one_and_update(
            {"_id": car_id},
            {"$inc": {"stock": 1}, "$set": {"availability": True, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if car is None:
            logger.warning("Cannot restore stock: car %s no longer exists", car_id)
            return None
        logger.info("Stock for car %s restored to %s", car_id, car["stock"])
        return car

    def set_rating(self, car_id: ObjectId, rating: float, count: int) -> None:
        self.cars.update_one(
            {"_id": car_id},
            {"$set": {"rating": rating, "number_of_reviews": count, "updated_at": utcnow()}},
        )

    def toggle_availability(self, car_id: ObjectId) -> dict:
        car = self.get(car_id)
        current = bool(car.get("availability"))
        if not current and car.get("stock", 0) <= 0:
            raise ValidationError("Cannot make a car with zero stock available", code="OUT_OF_STOCK")

        query = {"_id": car_id, "availability": current}
        if not current:
            query["stock"] = {"$gt": 0}
        updated = self.cars.find_one_and_update(
            query,
            {"$set": {"availability": not current, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ConflictError("Car changed while toggling availability, retry the request")
        logger.info("Car %s availability toggled to %s", car_id, updated["availability"])
        return updated

    def create(self, data: dict) -> dict:
        now = utcnow()
        doc = {
            **data,
            "rating": 0,
            "number_of_reviews": 0,
            "created_at": now,
            "updated_at": now,
        }
        if doc.get("stock", 0) == 0:
            doc["availability"] = False
        result = self.cars.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def update(self, car_id: ObjectId, fields: dict) -> dict:
        fields = dict(fields)
        if fields.get("stock") == 0:
            fields["availability"] = False
        elif fields.get("availability") is True and "stock" not in fields:
            if self.get(car_id).get("stock", 0) <= 0:
                raise ValidationError("Cannot make a car with zero stock available", code="OUT_OF_STOCK")
        fields["updated_at"] = utcnow()

        car = self.cars.find_one_and_update(
            {"_id": car_id}, {"$set": fields}, return_document=ReturnDocument.AFTER
        )
        if car is None:
            raise NotFoundError("Car not found")
        return car

    def delete(self, car_id: ObjectId) -> None:
        held = self.bookings.count_documents({"vehicle_id": car_id, "stock_held": True})
        if held:
            raise ConflictError(f"Car has {held} open booking(s) and cannot be deleted")
        result = self.cars.delete_one({"_id": car_id})
        if result.deleted_count == 0:
            raise NotFoundError("Car not found")
        logger.info("Car %s deleted", car_id)
