import logging
from fastapi import Request
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.database import Database
from carrental.config import (
    DATABASE_NAME,
    USER_COLLECTION,
    CAR_COLLECTION,
    BOOKING_COLLECTION,
    REVIEW_COLLECTION,
    SERVICE_COLLECTION,
    ACTIVITY_COLLECTION,
)

logger = logging.getLogger(__name__)


def get_database(request: Request) -> Database:
    return request.app.state.mongo_client[DATABASE_NAME]


def ensure_indexes(db: Database) -> None:
    db[USER_COLLECTION].create_indexes([
        IndexModel([("email", ASCENDING)], unique=True),
    ])
    db[CAR_COLLECTION].create_indexes([
        IndexModel([("stock", ASCENDING), ("availability", ASCENDING)]),
    ])
    db[BOOKING_COLLECTION].create_indexes([
        IndexModel([("user_id", ASCENDING), ("status", ASCENDING)]),
        IndexModel([("vehicle_id", ASCENDING), ("start_date", ASCENDING), ("end_date", ASCENDING)]),
    ])
    # one review per user per car
    db[REVIEW_COLLECTION].create_indexes([
        IndexModel([("user_id", ASCENDING), ("car_id", ASCENDING)], unique=True),
        IndexModel([("car_id", ASCENDING), ("date", DESCENDING)]),
    ])
    db[SERVICE_COLLECTION].create_indexes([
        IndexModel([("is_active", ASCENDING), ("name", ASCENDING)]),
    ])
    db[ACTIVITY_COLLECTION].create_indexes([
        IndexModel([("user_id", ASCENDING), ("created_at", DESCENDING)]),
    ])
    logger.info("Indexes ensured on %s", db.name)
