import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pymongo.database import Database
from carrental.database.db import get_database
from carrental.models.review.review import CarReview, UpdateReview
from carrental.services.json import return_json
from carrental.services.reviews import ReviewService
from carrental.utilities.convert_object_id import objid
from carrental.utilities.errors import ForbiddenError, InternalError
from carrental.utilities.helper import page_info
from carrental.utilities.security import get_current_user, get_optional_user, is_owner_or_admin

logger = logging.getLogger(__name__)

review_router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
)


def get_review_service(db: Database = Depends(get_database)) -> ReviewService:
    return ReviewService(db)


# Add review (anonymous callers must send userId and userName)
@review_router.post("")
def add_review(
    data: CarReview,
    current_user: Optional[dict] = Depends(get_optional_user),
    service: ReviewService = Depends(get_review_service),
):
    try:
        review = service.create(data, current_user)
        return return_json(message="Review submitted successfully", data=review, code=status.HTTP_201_CREATED)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to add review")
        raise InternalError("Failed to submit review")


# List all reviews
@review_router.get("")
def list_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    try:
        reviews, total = service.list({}, skip=(page - 1) * limit, limit=limit)
        return return_json(message="Reviews fetched successfully", data=reviews, page_info=page_info(page, limit, total))

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list reviews")
        raise InternalError("Failed to fetch reviews")


# List reviews for a car
@review_router.get("/car/{car_id}")
def list_car_reviews(
    car_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    try:
        reviews, total = service.list({"car_id": objid(car_id, "car")}, skip=(page - 1) * limit, limit=limit)
        return return_json(message="Reviews fetched successfully", data=reviews, page_info=page_info(page, limit, total))

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list reviews for car %s", car_id)
        raise InternalError("Failed to fetch reviews")


# List reviews written by a user (owner or admin)
@review_router.get("/user/{user_id}")
def list_user_reviews(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    try:
        if not is_owner_or_admin(current_user, user_id):
            raise ForbiddenError("Not authorized to view these reviews")
        reviews, total = service.list({"user_id": user_id}, skip=(page - 1) * limit, limit=limit)
        return return_json(message="Reviews fetched successfully", data=reviews, page_info=page_info(page, limit, total))

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list reviews for user %s", user_id)
        raise InternalError("Failed to fetch reviews")


# Get review by id
@review_router.get("/{review_id}")
def get_review(review_id: str, service: ReviewService = Depends(get_review_service)):
    try:
        return return_json(message="Review fetched successfully", data=service.get(review_id))

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to fetch review %s", review_id)
        raise InternalError("Failed to fetch review")


# Update review (owner or admin)
@review_router.put("/{review_id}")
def update_review(
    review_id: str,
    data: UpdateReview,
    current_user: dict = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    try:
        review = service.update(review_id, data, current_user)
        return return_json(message="Review updated successfully", data=review)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to update review %s", review_id)
        raise InternalError("Failed to update review")


# Delete review (owner or admin)
@review_router.delete("/{review_id}")
def delete_review(
    review_id: str,
    current_user: dict = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    try:
        service.delete(review_id, current_user)
        return return_json(message="Review deleted successfully")

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to delete review %s", review_id)
        raise InternalError("Failed to delete review")
