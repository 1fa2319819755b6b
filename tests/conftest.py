from datetime import datetime

import mongomock
import pytest
from fastapi.testclient import TestClient

from carrental.config import BOOKING_COLLECTION, CAR_COLLECTION, SERVICE_COLLECTION, USER_COLLECTION
from carrental.database.db import ensure_indexes, get_database
from carrental.utilities.helper import utcnow
from carrental.utilities.security import create_access_token
from main import app


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    database = client["car_rental_test"]
    ensure_indexes(database)
    yield database
    client.close()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_database] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, name="Alice", email="alice@carrental.io", role="user"):
    now = utcnow()
    result = db[USER_COLLECTION].insert_one({
        "name": name,
        "email": email,
        "password": "not-a-real-hash",
        "role": role,
        "created_at": now,
        "updated_at": now,
    })
    user_id = str(result.inserted_id)
    token = create_access_token({"sub": user_id, "role": role})
    return {"id": user_id, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def other_user(db):
    return make_user(db, name="Bob", email="bob@carrental.io")


@pytest.fixture
def admin(db):
    return make_user(db, name="Admin", email="admin@carrental.io", role="admin")


def make_car(db, **overrides):
    now = utcnow()
    car = {
        "name": "Toyota Corolla 2022",
        "brand": "Toyota",
        "model": "Corolla",
        "year": 2022,
        "category": "compact",
        "type": "sedan",
        "transmission": "automatic",
        "fuel_type": "petrol",
        "seats": 5,
        "price_per_day": 50,
        "photos": [],
        "description": "Reliable compact sedan",
        "features": ["bluetooth"],
        "location": "Downtown",
        "mileage": 12000,
        "stock": 2,
        "availability": True,
        "rating": 0,
        "number_of_reviews": 0,
        "created_at": now,
        "updated_at": now,
    }
    car.update(overrides)
    car["_id"] = db[CAR_COLLECTION].insert_one(car).inserted_id
    return car


@pytest.fixture
def car(db):
    return make_car(db)


def make_service(db, name="GPS", price=10, is_active=True, type="gps"):
    now = utcnow()
    service = {
        "name": name,
        "description": f"{name} add-on",
        "price": price,
        "type": type,
        "is_active": is_active,
        "created_at": now,
        "updated_at": now,
    }
    service["_id"] = db[SERVICE_COLLECTION].insert_one(service).inserted_id
    return service


def make_booking(db, vehicle_id, user_id, start, end, status="pending", stock_held=True):
    now = utcnow()
    booking = {
        "vehicle_id": vehicle_id,
        "user_id": user_id,
        "start_date": start,
        "end_date": end,
        "status": status,
        "payment_status": "pending",
        "total_amount": 0,
        "stock_held": stock_held,
        "created_at": now,
        "updated_at": now,
    }
    booking["_id"] = db[BOOKING_COLLECTION].insert_one(booking).inserted_id
    return booking


def booking_payload(car, start="2030-01-01T00:00:00", end="2030-01-03T00:00:00", **extra):
    payload = {
        "vehicleId": str(car["_id"]),
        "startDate": start,
        "endDate": end,
        "pickupLocation": {"address": "1 Main St", "coordinates": {"lat": 40.7, "lng": -74.0}},
        "dropoffLocation": {"address": "1 Main St", "coordinates": {"lat": 40.7, "lng": -74.0}},
    }
    payload.update(extra)
    return payload


def jan(day, hour=0):
    return datetime(2030, 1, day, hour)
