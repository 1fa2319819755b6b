from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from carrental.utilities.errors import ValidationError


def convert_object_ids(obj):
    if isinstance(obj, list):
        return [convert_object_ids(item) for item in obj]
    elif isinstance(obj, dict):
        return {key: convert_object_ids(value) for key, value in obj.items()}
    elif isinstance(obj, ObjectId):
        return str(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    else:
        return obj


def objid(id, label: str = "resource"):
    if isinstance(id, ObjectId):
        return id
    try:
        return ObjectId(id)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {label} ID format", code="INVALID_ID")
