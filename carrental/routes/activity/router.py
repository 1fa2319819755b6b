import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import DESCENDING
from pymongo.database import Database
from carrental.config import ACTIVITY_COLLECTION, USER_COLLECTION
from carrental.database.db import get_database
from carrental.services.json import return_json
from carrental.utilities.convert_object_id import objid
from carrental.utilities.errors import ForbiddenError, InternalError
from carrental.utilities.helper import page_info
from carrental.utilities.security import get_current_user, is_owner_or_admin, require_admin

logger = logging.getLogger(__name__)

activity_router = APIRouter(
    prefix="/activities",
    tags=["Activities"],
)


def _activities(db: Database, query: dict, page: int, limit: int):
    activities = db[ACTIVITY_COLLECTION]
    total = activities.count_documents(query)
    cursor = activities.find(query).sort("created_at", DESCENDING).skip((page - 1) * limit).limit(limit)
    return list(cursor), page_info(page, limit, total)


# Admin list all activities
@activity_router.get("")
def list_all_activities(
    current_user: dict = Depends(require_admin),
    db: Database = Depends(get_database),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    try:
        activities, info = _activities(db, {}, page, limit)
        user_ids = list({a["user_id"] for a in activities})
        users = {
            u["_id"]: u
            for u in db[USER_COLLECTION].find({"_id": {"$in": user_ids}}, {"name": 1, "email": 1})
        }
        for activity in activities:
            activity["user"] = users.get(activity["user_id"])
        return return_json(message="Activities fetched successfully", data=activities, page_info=info)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list activities")
        raise InternalError("Failed to fetch activities")


# Current user's activity
@activity_router.get("/me")
def list_my_activities(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_database),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    try:
        activities, info = _activities(db, {"user_id": objid(current_user["user_id"], "user")}, page, limit)
        return return_json(message="Activities fetched successfully", data=activities, page_info=info)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list activities")
        raise InternalError("Failed to fetch activities")


# A given user's activity (owner or admin)
@activity_router.get("/user/{user_id}")
def list_user_activities(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_database),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    try:
        if not is_owner_or_admin(current_user, user_id):
            raise ForbiddenError("You do not have permission to access these activities")
        activities, info = _activities(db, {"user_id": objid(user_id, "user")}, page, limit)
        return return_json(message="Activities fetched successfully", data=activities, page_info=info)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list activities")
        raise InternalError("Failed to fetch activities")
