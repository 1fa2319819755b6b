import logging
from typing import Optional
from pymongo.database import Database
from carrental.config import ACTIVITY_COLLECTION
from carrental.models.activity.activity import ActivityType
from carrental.utilities.convert_object_id import objid
from carrental.utilities.helper import utcnow

logger = logging.getLogger(__name__)


def record_activity(db: Database, user_id, type: ActivityType, description: str, details: dict = None) -> Optional[dict]:
    """Append an entry to the user's activity log. Never raises."""
    try:
        doc = {
            "user_id": objid(user_id, "user"),
            "type": ActivityType(type).value,
            "description": description,
            "details": details or {},
            "created_at": utcnow(),
        }
        result = db[ACTIVITY_COLLECTION].insert_one(doc)
    except Exception:
        logger.exception("Failed to record %s activity for user %s", type, user_id)
        return None
    doc["_id"] = result.inserted_id
    return doc
