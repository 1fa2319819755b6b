import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pymongo.database import Database
from carrental.database.db import get_database
from carrental.models.car.car import AddCar, UpdateCar
from carrental.services.inventory import CarInventory
from carrental.services.json import return_json
from carrental.utilities.convert_object_id import objid
from carrental.utilities.errors import InternalError, ValidationError
from carrental.utilities.helper import page_info
from carrental.utilities.security import require_admin

logger = logging.getLogger(__name__)

car_router = APIRouter(
    prefix="/cars",
    tags=["Cars"],
)


def get_inventory(db: Database = Depends(get_database)) -> CarInventory:
    return CarInventory(db)


# List cars (in stock and available unless show_all)
@car_router.get("")
def list_cars(
    show_all: bool = Query(False, alias="showAll"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=100),
    inventory: CarInventory = Depends(get_inventory),
):
    try:
        cars, total = inventory.list_available(include_unavailable=show_all, skip=(page - 1) * limit, limit=limit)
        return return_json(message="Cars fetched successfully", data=cars, page_info=page_info(page, limit, total))

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to list cars")
        raise InternalError("Failed to fetch cars")


# Get car by id
@car_router.get("/{car_id}")
def get_car(car_id: str, inventory: CarInventory = Depends(get_inventory)):
    try:
        car = inventory.get(objid(car_id, "car"))
        return return_json(message="Car fetched successfully", data=car)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to fetch car %s", car_id)
        raise InternalError("Failed to fetch car")


# Admin add car
@car_router.post("")
def add_car(
    data: AddCar,
    current_user: dict = Depends(require_admin),
    inventory: CarInventory = Depends(get_inventory),
):
    try:
        car = inventory.create(data.model_dump(mode="json"))
        logger.info("Car %s created by %s", car["_id"], current_user["email"])
        return return_json(message="Car added successfully", data=car, code=status.HTTP_201_CREATED)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to add car")
        raise InternalError("Failed to add car")


# Admin update car
@car_router.patch("/{car_id}")
def update_car(
    car_id: str,
    data: UpdateCar,
    current_user: dict = Depends(require_admin),
    inventory: CarInventory = Depends(get_inventory),
):
    try:
        fields = data.model_dump(mode="json", exclude_none=True)
        if not fields:
            raise ValidationError("No data provided to update.")
        car = inventory.update(objid(car_id, "car"), fields)
        return return_json(message="Car updated successfully", data=car)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to update car %s", car_id)
        raise InternalError("Failed to update car")


# Admin delete car
@car_router.delete("/{car_id}")
def delete_car(
    car_id: str,
    current_user: dict = Depends(require_admin),
    inventory: CarInventory = Depends(get_inventory),
):
    try:
        inventory.delete(objid(car_id, "car"))
        return return_json(message="Car deleted successfully")

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to delete car %s", car_id)
        raise InternalError("Failed to delete car")


# Admin toggle availability
@car_router.patch("/{car_id}/toggle-availability")
def toggle_availability(
    car_id: str,
    current_user: dict = Depends(require_admin),
    inventory: CarInventory = Depends(get_inventory),
):
    try:
        car = inventory.toggle_availability(objid(car_id, "car"))
        state = "available" if car["availability"] else "unavailable"
        return return_json(message=f"Car is now {state}", data=car)

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Failed to toggle availability for car %s", car_id)
        raise InternalError("Failed to toggle car availability")
