import logging
from typing import Optional, Tuple
from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from carrental.config import REVIEW_COLLECTION, USER_COLLECTION
from carrental.models.review.review import CarReview, UpdateReview
from carrental.services.inventory import CarInventory
from carrental.utilities.convert_object_id import objid
from carrental.utilities.errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from carrental.utilities.helper import average_rating, utcnow
from carrental.utilities.security import is_owner_or_admin

logger = logging.getLogger(__name__)


class ReviewAggregator:
    """Recomputes a car's rating and review count from all of its reviews."""

    def __init__(self, db: Database, inventory: CarInventory = None):
        self.reviews = db[REVIEW_COLLECTION]
        self.inventory = inventory or CarInventory(db)

    def refresh(self, car_id: ObjectId) -> Tuple[float, int]:
        ratings = [r["rating"] for r in self.reviews.find({"car_id": car_id}, {"rating": 1})]
        rating = average_rating(ratings)
        self.inventory.set_rating(car_id, rating, len(ratings))
        logger.info("Car %s: %s review(s), average rating %s", car_id, len(ratings), rating)
        return rating, len(ratings)


class ReviewService:
    def __init__(self, db: Database):
        self.reviews = db[REVIEW_COLLECTION]
        self.users = db[USER_COLLECTION]
        self.inventory = CarInventory(db)
        self.aggregator = ReviewAggregator(db, self.inventory)

    def get(self, review_id) -> dict:
        review = self.reviews.find_one({"_id": objid(review_id, "review")})
        if not review:
            raise NotFoundError("Review not found")
        return review

    def list(self, query: dict, skip: int = 0, limit: int = 0) -> Tuple[list, int]:
        total = self.reviews.count_documents(query)
        cursor = self.reviews.find(query).sort("date", DESCENDING).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor), total

    def create(self, data: CarReview, current_user: Optional[dict]) -> dict:
        car_id = objid(data.car_id, "car")
        self.inventory.get(car_id)

        if current_user:
            user_id = current_user["user_id"]
            user_name = current_user.get("name") or "Anonymous"
            user_image = current_user.get("profile_image")
        else:
            if not data.user_id or not data.user_name:
                raise ValidationError("userId and userName are required for anonymous reviews")
            if ObjectId.is_valid(data.user_id) and self.users.find_one({"_id": ObjectId(data.user_id)}, {"_id": 1}):
                raise UnauthorizedError("Sign in to review as a registered user")
            user_id, user_name, user_image = data.user_id, data.user_name, data.user_image

        if self.reviews.find_one({"user_id": user_id, "car_id": car_id}):
            raise ConflictError("You have already reviewed this car", code="DUPLICATE_REVIEW")

        now = utcnow()
        doc = {
            "car_id": car_id,
            "user_id": user_id,
            "user_name": user_name,
            "user_image": user_image,
            "rating": data.rating,
            "comment": data.comment,
            "date": now,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.reviews.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("You have already reviewed this car", code="DUPLICATE_REVIEW")
        doc["_id"] = result.inserted_id

        self.aggregator.refresh(car_id)
        return doc

    def update(self, review_id, data: UpdateReview, current_user: dict) -> dict:
        review = self.get(review_id)
        if not is_owner_or_admin(current_user, review["user_id"]):
            raise ForbiddenError("Not authorized to update this review")

        fields = data.model_dump(exclude_none=True)
        if not fields:
            raise ValidationError("No data provided to update.")
        fields["updated_at"] = utcnow()

        updated = self.reviews.find_one_and_update(
            {"_id": review["_id"]}, {"$set": fields}, return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise NotFoundError("Review not found")

        self.aggregator.refresh(updated["car_id"])
        return updated

    def delete(self, review_id, current_user: dict) -> None:
        review = self.get(review_id)
        if not is_owner_or_admin(current_user, review["user_id"]):
            raise ForbiddenError("Not authorized to delete this review")

        deleted = self.reviews.find_one_and_delete({"_id": review["_id"]})
        if deleted is None:
            raise NotFoundError("Review not found")

        self.aggregator.refresh(deleted["car_id"])
