from datetime import datetime

from bson import ObjectId

from carrental.services.conflicts import BookingConflictChecker
from conftest import jan, make_booking


def test_overlapping_range_conflicts(db, car):
    make_booking(db, car["_id"], ObjectId(), jan(1), jan(5))
    checker = BookingConflictChecker(db)

    assert checker.has_conflict(car["_id"], jan(3), jan(7))
    assert checker.has_conflict(car["_id"], jan(2), jan(3))
    assert checker.has_conflict(car["_id"], jan(1), jan(10))


def test_shared_boundary_counts_as_conflict(db, car):
    make_booking(db, car["_id"], ObjectId(), jan(1), jan(3))
    checker = BookingConflictChecker(db)

    assert checker.has_conflict(car["_id"], jan(3), jan(5))
    assert checker.has_conflict(car["_id"], datetime(2029, 12, 30), jan(1))


def test_disjoint_range_does_not_conflict(db, car):
    make_booking(db, car["_id"], ObjectId(), jan(1), jan(3))
    checker = BookingConflictChecker(db)

    assert not checker.has_conflict(car["_id"], jan(3, 1), jan(6))
    assert not checker.has_conflict(car["_id"], jan(10), jan(12))


def test_only_blocking_statuses_count(db, car):
    make_booking(db, car["_id"], ObjectId(), jan(1), jan(5), status="cancelled", stock_held=False)
    make_booking(db, car["_id"], ObjectId(), jan(1), jan(5), status="completed", stock_held=False)
    checker = BookingConflictChecker(db)
    assert not checker.has_conflict(car["_id"], jan(2), jan(4))

    make_booking(db, car["_id"], ObjectId(), jan(1), jan(5), status="active")
    assert checker.has_conflict(car["_id"], jan(2), jan(4))


def test_other_vehicle_and_excluded_booking_are_ignored(db, car):
    booking = make_booking(db, car["_id"], ObjectId(), jan(1), jan(5))
    checker = BookingConflictChecker(db)

    assert not checker.has_conflict(ObjectId(), jan(2), jan(4))
    assert not checker.has_conflict(car["_id"], jan(2), jan(4), exclude_booking_id=booking["_id"])
