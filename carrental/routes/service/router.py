import logging
from fastapi import APIRouter, Depends, HTTPException, status
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from carrental.config import SERVICE_COLLECTION
from carrental.database.db import get_database
from carrental.models.service.service import AddService, UpdateService
from carrental.services.json import return_json
from carrental.utilities.convert_object_id import objid
from carrental.utilities.errors import InternalError, NotFoundError, ValidationError
from carrental.utilities.helper import utcnow
from carrental.utilities.security import require_admin

logger = logging.getLogger(__name__)

service_router = APIRouter(
    prefix="/services",
    tags=["AdditionalServices"],
)


# List active services
@service_router.get("")
def list_services(db: Database = Depends(get_database)):
    try:
        services = list(db[SERVICE_COLLECTION].find({"is_active": True}).sort("name", ASCENDING))
        return return_json(message="Services fetched successfully", data=services)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list services")
        raise InternalError("Failed to fetch services")


# Get service by id
@service_router.get("/{service_id}")
def get_service(service_id: str, db: Database = Depends(get_database)):
    try:
        service = db[SERVICE_COLLECTION].find_one({"_id": objid(service_id, "service")})
        if not service:
            raise NotFoundError("Service not found")
        return return_json(message="Service fetched successfully", data=service)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to fetch service %s", service_id)
        raise InternalError("Failed to fetch service")


# Admin add service
@service_router.post("")
def add_service(data: AddService, current_user: dict = Depends(require_admin), db: Database = Depends(get_database)):
    try:
        now = utcnow()
        service = {**data.model_dump(mode="json"), "created_at": now, "updated_at": now}
        result = db[SERVICE_COLLECTION].insert_one(service)
        service["_id"] = result.inserted_id
        return return_json(message="Service added successfully", data=service, code=status.HTTP_201_CREATED)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to add service")
        raise InternalError("Failed to add service")


# Admin update service
@service_router.put("/{service_id}")
def update_service(
    service_id: str,
    data: UpdateService,
    current_user: dict = Depends(require_admin),
    db: Database = Depends(get_database),
):
    try:
        fields = data.model_dump(mode="json", exclude_none=True)
        if not fields:
            raise ValidationError("No data provided to update.")
        fields["updated_at"] = utcnow()

        service = db[SERVICE_COLLECTION].find_one_and_update(
            {"_id": objid(service_id, "service")},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not service:
            raise NotFoundError("Service not found")
        return return_json(message="Service updated successfully", data=service)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to update service %s", service_id)
        raise InternalError("Failed to update service")


# Admin soft delete service
@service_router.delete("/{service_id}")
def delete_service(service_id: str, current_user: dict = Depends(require_admin), db: Database = Depends(get_database)):
    try:
        result = db[SERVICE_COLLECTION].update_one(
            {"_id": objid(service_id, "service")},
            {"$set": {"is_active": False, "updated_at": utcnow()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Service not found")
        return return_json(message="Service deleted successfully")

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to delete service %s", service_id)
        raise InternalError("Failed to delete service")
