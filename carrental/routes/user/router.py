import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from carrental.config import USER_COLLECTION
from carrental.database.db import get_database
from carrental.models.activity.activity import ActivityType
from carrental.models.user.user import ChangePassword, UpdateProfile
from carrental.services.activity import record_activity
from carrental.services.json import return_json
from carrental.utilities.convert_object_id import objid
from carrental.utilities.errors import InternalError, NotFoundError, ValidationError
from carrental.utilities.helper import page_info, utcnow
from carrental.utilities.security import get_current_user, hash_password, require_admin, verify_password

logger = logging.getLogger(__name__)

user_router = APIRouter(
    prefix="/users",
    tags=["Users"],
)

PUBLIC_FIELDS = {"password": 0}


# Admin list all users
@user_router.get("")
def list_users(
    current_user: dict = Depends(require_admin),
    db: Database = Depends(get_database),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    try:
        users = db[USER_COLLECTION]
        total = users.count_documents({})
        cursor = users.find({}, PUBLIC_FIELDS).sort("created_at", DESCENDING).skip((page - 1) * limit).limit(limit)
        return return_json(message="Users fetched successfully", data=list(cursor), page_info=page_info(page, limit, total))

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list users")
        raise InternalError("Failed to fetch users")


# Current user's profile
@user_router.get("/me")
def get_me(current_user: dict = Depends(get_current_user), db: Database = Depends(get_database)):
    try:
        user = db[USER_COLLECTION].find_one({"_id": objid(current_user["user_id"], "user")}, PUBLIC_FIELDS)
        if not user:
            raise NotFoundError("User not found")
        return return_json(message="Profile fetched successfully", data=user)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to fetch profile")
        raise InternalError("Failed to fetch profile")


# Update name / phone / address / profile image
@user_router.put("/me")
def update_me(data: UpdateProfile, current_user: dict = Depends(get_current_user), db: Database = Depends(get_database)):
    try:
        fields = data.model_dump(exclude_none=True)
        if not fields:
            raise ValidationError("No data provided to update.")
        fields["updated_at"] = utcnow()

        user = db[USER_COLLECTION].find_one_and_update(
            {"_id": objid(current_user["user_id"], "user")},
            {"$set": fields},
            projection=PUBLIC_FIELDS,
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise NotFoundError("User not found")

        record_activity(
            db, user["_id"], ActivityType.PROFILE_UPDATE, "Profile updated",
            {"fields": sorted(k for k in fields if k != "updated_at")},
        )
        return return_json(message="Profile updated successfully", data=user)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to update profile")
        raise InternalError("Failed to update profile")


# Change password
@user_router.put("/me/password")
def change_password(data: ChangePassword, current_user: dict = Depends(get_current_user), db: Database = Depends(get_database)):
    try:
        users = db[USER_COLLECTION]
        user = users.find_one({"_id": objid(current_user["user_id"], "user")})
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(data.current_password, user["password"]):
            raise ValidationError("Current password is incorrect", code="INVALID_CREDENTIALS")

        users.update_one(
            {"_id": user["_id"]},
            {"$set": {"password": hash_password(data.new_password), "updated_at": utcnow()}},
        )
        record_activity(db, user["_id"], ActivityType.PASSWORD_CHANGE, "Password changed")
        return return_json(message="Password has been successfully changed")

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to change password")
        raise InternalError("Failed to change password")
