from datetime import datetime

import pytest
from bson import ObjectId

from carrental.config import BOOKING_COLLECTION, CAR_COLLECTION, SERVICE_COLLECTION
from carrental.models.booking.booking import CreateBooking, UpdateBookingStatus
from carrental.services.bookings import BookingService
from carrental.utilities.errors import BookingConflictError
from conftest import booking_payload, make_booking, make_car, make_service


def car_state(db, car):
    doc = db[CAR_COLLECTION].find_one({"_id": car["_id"]})
    return doc["stock"], doc["availability"]


def create(client, user, car, **kwargs):
    return client.post("/bookings", json=booking_payload(car, **kwargs), headers=user["headers"])


def test_create_booking_computes_total_and_takes_stock(client, db, user, car):
    response = create(client, user, car)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    booking = body["data"]
    assert booking["total_amount"] == 100
    assert booking["rental_days"] == 2
    assert booking["status"] == "pending"
    assert booking["payment_status"] == "pending"
    assert booking["user_id"] == user["id"]
    assert booking["vehicle"]["name"] == car["name"]
    assert car_state(db, car) == (1, True)


def test_additional_service_is_charged_per_day_and_snapshotted(client, db, user, car):
    gps = make_service(db, price=10)

    response = create(client, user, car, additionalServices=[{"serviceId": str(gps["_id"])}])

    assert response.status_code == 201
    booking = response.json()["data"]
    assert booking["total_amount"] == 120
    assert booking["additional_services"] == [{"service_id": str(gps["_id"]), "name": "GPS", "price": 10}]

    db[SERVICE_COLLECTION].update_one({"_id": gps["_id"]}, {"$set": {"price": 99}})
    stored = db[BOOKING_COLLECTION].find_one({"_id": ObjectId(booking["_id"])})
    assert stored["total_amount"] == 120
    assert stored["additional_services"][0]["price"] == 10


def test_inactive_service_is_rejected(client, db, user, car):
    retired = make_service(db, is_active=False)

    response = create(client, user, car, additionalServices=[{"serviceId": str(retired["_id"])}])

    assert response.status_code == 400
    assert car_state(db, car) == (2, True)


def test_last_unit_makes_car_unavailable(client, db, user):
    car = make_car(db, stock=1)

    assert create(client, user, car).status_code == 201
    assert car_state(db, car) == (0, False)


@pytest.mark.parametrize("availability, code", [(False, "VEHICLE_UNAVAILABLE"), (True, "OUT_OF_STOCK")])
def test_zero_stock_car_cannot_be_booked(client, db, user, availability, code):
    car = make_car(db, stock=0, availability=availability)

    response = create(client, user, car)

    assert response.status_code == 400
    assert response.json()["code"] == code
    assert car_state(db, car) == (0, availability)


def test_overlapping_dates_are_rejected(client, db, user, other_user, car):
    assert create(client, user, car).status_code == 201

    response = create(client, other_user, car, start="2030-01-03T00:00:00", end="2030-01-04T00:00:00")

    assert response.status_code == 400
    assert response.json()["code"] == "BOOKING_CONFLICT"
    assert car_state(db, car) == (1, True)
    assert db[BOOKING_COLLECTION].count_documents({}) == 1


def test_cancelled_booking_frees_its_dates(client, db, user, other_user, car):
    booking_id = create(client, user, car).json()["data"]["_id"]
    client.put(f"/bookings/{booking_id}/cancel", headers=user["headers"])

    assert create(client, other_user, car).status_code == 201


def test_invalid_date_range_and_ids(client, user, car):
    response = create(client, user, car, start="2030-01-03T00:00:00", end="2030-01-01T00:00:00")
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"

    payload = booking_payload(car)
    payload["vehicleId"] = "bogus"
    response = client.post("/bookings", json=payload, headers=user["headers"])
    assert response.status_code == 400

    payload["vehicleId"] = str(ObjectId())
    response = client.post("/bookings", json=payload, headers=user["headers"])
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_create_requires_authentication(client, car):
    response = client.post("/bookings", json=booking_payload(car))
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_cancel_restores_stock_exactly_once(client, db, user):
    car = make_car(db, stock=1)
    booking_id = create(client, user, car).json()["data"]["_id"]
    assert car_state(db, car) == (0, False)

    first = client.put(f"/bookings/{booking_id}/cancel", headers=user["headers"])
    second = client.put(f"/bookings/{booking_id}/cancel", headers=user["headers"])

    assert first.status_code == 200
    assert first.json()["data"]["status"] == "cancelled"
    assert second.status_code == 400
    assert second.json()["code"] == "INVALID_TRANSITION"
    assert car_state(db, car) == (1, True)


def test_delete_uncancelled_booking_restores_stock_once(client, db, user, car):
    booking_id = create(client, user, car).json()["data"]["_id"]

    response = client.delete(f"/bookings/{booking_id}", headers=user["headers"])

    assert response.status_code == 200
    assert car_state(db, car) == (2, True)
    assert client.delete(f"/bookings/{booking_id}", headers=user["headers"]).status_code == 404
    assert car_state(db, car) == (2, True)


def test_cancel_then_delete_does_not_restore_twice(client, db, user, car):
    booking_id = create(client, user, car).json()["data"]["_id"]

    client.put(f"/bookings/{booking_id}/cancel", headers=user["headers"])
    client.delete(f"/bookings/{booking_id}", headers=user["headers"])

    assert car_state(db, car) == (2, True)


def test_only_owner_or_admin_can_see_a_booking(client, user, other_user, admin, car):
    booking_id = create(client, user, car).json()["data"]["_id"]

    assert client.get(f"/bookings/{booking_id}", headers=other_user["headers"]).status_code == 403
    assert client.get(f"/bookings/{booking_id}", headers=admin["headers"]).status_code == 200
    owned = client.get(f"/bookings/{booking_id}", headers=user["headers"])
    assert owned.status_code == 200
    assert owned.json()["data"]["vehicle"]["brand"] == "Toyota"


def test_non_owner_cannot_cancel_or_delete(client, db, user, other_user, car):
    booking_id = create(client, user, car).json()["data"]["_id"]

    assert client.put(f"/bookings/{booking_id}/cancel", headers=other_user["headers"]).status_code == 403
    assert client.delete(f"/bookings/{booking_id}", headers=other_user["headers"]).status_code == 403
    assert car_state(db, car) == (1, True)


def test_listing_is_scoped_to_caller_unless_admin(client, db, user, other_user, admin):
    create(client, user, make_car(db))
    create(client, other_user, make_car(db))

    mine = client.get("/bookings", headers=user["headers"]).json()
    everyone = client.get("/bookings", headers=admin["headers"]).json()

    assert [b["user_id"] for b in mine["data"]] == [user["id"]]
    assert everyone["page_info"]["total_records"] == 2
    assert client.get(f"/bookings/user/{user['id']}", headers=other_user["headers"]).status_code == 403
    assert len(client.get(f"/bookings/user/{user['id']}", headers=admin["headers"]).json()["data"]) == 1


def test_approve_and_reject_are_admin_only(client, db, user, admin, car):
    first = create(client, user, car).json()["data"]["_id"]
    second = create(client, user, car, start="2030-02-01T00:00:00", end="2030-02-02T00:00:00").json()["data"]["_id"]
    assert car_state(db, car) == (0, False)

    assert client.put(f"/bookings/{first}/approve", headers=user["headers"]).status_code == 403

    approved = client.put(f"/bookings/{first}/approve", headers=admin["headers"])
    assert approved.json()["data"]["status"] == "active"
    assert car_state(db, car) == (0, False)
    assert client.put(f"/bookings/{first}/approve", headers=admin["headers"]).status_code == 400

    rejected = client.put(f"/bookings/{second}/reject", headers=admin["headers"])
    assert rejected.json()["data"]["status"] == "cancelled"
    # the unit stays committed and a later delete does not hand it back
    assert car_state(db, car) == (0, False)
    client.delete(f"/bookings/{second}", headers=admin["headers"])
    assert car_state(db, car) == (0, False)


def test_reject_can_be_configured_to_release_stock(db, user):
    car = make_car(db, stock=1)
    service = BookingService(db, release_on_reject=True)
    booking = service.create({"user_id": user["id"]}, _request(car))
    assert car_state(db, car) == (0, False)

    service.reject(booking["_id"])

    assert car_state(db, car) == (1, True)


def test_admin_status_updates_follow_transitions(client, db, user, admin, car):
    booking_id = create(client, user, car).json()["data"]["_id"]

    bad = client.put(f"/bookings/{booking_id}", json={"status": "completed"}, headers=admin["headers"])
    assert bad.status_code == 400

    client.put(f"/bookings/{booking_id}", json={"status": "active"}, headers=admin["headers"])
    done = client.put(
        f"/bookings/{booking_id}",
        json={"status": "completed", "paymentStatus": "paid"},
        headers=admin["headers"],
    )
    assert done.status_code == 200
    assert done.json()["data"]["status"] == "completed"
    assert done.json()["data"]["payment_status"] == "paid"
    assert car_state(db, car) == (1, True)

    client.delete(f"/bookings/{booking_id}", headers=admin["headers"])
    assert car_state(db, car) == (1, True)


def test_completion_can_be_configured_to_release_stock(db, user, car):
    service = BookingService(db, release_on_complete=True)
    booking = service.create({"user_id": user["id"]}, _request(car))
    service.approve(booking["_id"])

    admin = {"user_id": str(ObjectId()), "role": "admin"}
    service.update(booking["_id"], UpdateBookingStatus(status="completed"), admin)
    service.delete(booking["_id"], {"user_id": user["id"], "role": "user"})

    assert car_state(db, car) == (2, True)


def test_owner_may_only_cancel_upcoming_bookings(client, db, user, car):
    booking_id = create(client, user, car).json()["data"]["_id"]

    response = client.put(f"/bookings/{booking_id}", json={"status": "active"}, headers=user["headers"])
    assert response.status_code == 400

    response = client.put(f"/bookings/{booking_id}", json={"paymentStatus": "paid"}, headers=user["headers"])
    assert response.status_code == 403

    response = client.put(f"/bookings/{booking_id}", json={"status": "cancelled"}, headers=user["headers"])
    assert response.status_code == 200
    assert car_state(db, car) == (2, True)

    past = make_booking(db, car["_id"], ObjectId(user["id"]), datetime(2020, 1, 1), datetime(2020, 1, 3))
    response = client.put(f"/bookings/{past['_id']}", json={"status": "cancelled"}, headers=user["headers"])
    assert response.status_code == 400


def test_started_booking_cannot_be_cancelled_by_its_owner(client, db, user, admin, car):
    started = make_booking(db, car["_id"], ObjectId(user["id"]), datetime(2020, 1, 1), datetime(2020, 1, 3))

    response = client.put(f"/bookings/{started['_id']}/cancel", headers=user["headers"])
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TRANSITION"
    assert car_state(db, car) == (2, True)

    assert client.put(f"/bookings/{started['_id']}/cancel", headers=admin["headers"]).status_code == 200
    assert car_state(db, car) == (3, True)


def _request(car):
    return CreateBooking(**booking_payload(car))


def test_racing_booking_detected_after_insert_is_rolled_back(db, user, car, monkeypatch):
    make_booking(db, car["_id"], ObjectId(), datetime(2030, 1, 2), datetime(2030, 1, 4))
    service = BookingService(db)
    checks = []
    real_check = service.conflicts.has_conflict

    def first_check_misses(*args, **kwargs):
        checks.append(kwargs)
        return False if len(checks) == 1 else real_check(*args, **kwargs)

    monkeypatch.setattr(service.conflicts, "has_conflict", first_check_misses)

    with pytest.raises(BookingConflictError):
        service.create({"user_id": user["id"]}, _request(car))

    assert len(checks) == 2
    assert db[BOOKING_COLLECTION].count_documents({"user_id": ObjectId(user["id"])}) == 0
    assert car_state(db, car) == (2, True)


def test_stock_is_restored_when_persisting_the_booking_fails(db, user, car, monkeypatch):
    service = BookingService(db)

    def broken_insert(*args, **kwargs):
        raise RuntimeError("write failed")

    monkeypatch.setattr(service.bookings, "insert_one", broken_insert)

    with pytest.raises(RuntimeError):
        service.create({"user_id": user["id"]}, _request(car))

    assert car_state(db, car) == (2, True)


def test_last_unit_is_restored_when_closing_the_car_fails(db, user, monkeypatch):
    car = make_car(db, stock=1)
    service = BookingService(db)

    def broken_update(*args, **kwargs):
        raise RuntimeError("write failed")

    monkeypatch.setattr(service.inventory.cars, "update_one", broken_update)

    with pytest.raises(RuntimeError):
        service.create({"user_id": user["id"]}, _request(car))

    assert car_state(db, car) == (1, True)
    assert db[BOOKING_COLLECTION].count_documents({}) == 0


def test_booking_creation_is_logged_as_activity(client, user, car):
    create(client, user, car)

    activities = client.get("/activities/me", headers=user["headers"]).json()["data"]
    assert [a["type"] for a in activities] == ["booking"]
    assert activities[0]["details"]["total_amount"] == 100
