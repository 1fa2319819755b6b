from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, model_validator
from carrental.utilities.helper import to_utc_naive


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COMPLETED = "completed"
    REFUNDED = "refunded"


# statuses that occupy the vehicle for their date range
BLOCKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.ACTIVE.value, BookingStatus.CONFIRMED.value)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.ACTIVE, BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.ACTIVE, BookingStatus.CANCELLED},
    BookingStatus.ACTIVE: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


def sources_for(target: BookingStatus) -> List[str]:
    return [source.value for source, targets in ALLOWED_TRANSITIONS.items() if target in targets]


class Coordinates(BaseModel):
    lat: float = 0
    lng: float = 0


class Location(BaseModel):
    address: str = ""
    coordinates: Coordinates = Coordinates()

    model_config = {"str_strip_whitespace": True}


class SelectedService(BaseModel):
    service_id: str = Field(..., alias="serviceId")

    model_config = {"populate_by_name": True}


class CreateBooking(BaseModel):
    vehicle_id: str = Field(..., alias="vehicleId")
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    pickup_location: Location = Field(..., alias="pickupLocation")
    dropoff_location: Location = Field(..., alias="dropoffLocation")
    additional_services: List[SelectedService] = Field([], alias="additionalServices")
    extras: Dict[str, str] = {}

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_date_range(self):
        if to_utc_naive(self.end_date) <= to_utc_naive(self.start_date):
            raise ValueError("End date must be after start date")
        return self


class UpdateBookingStatus(BaseModel):
    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = Field(None, alias="paymentStatus")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_not_empty(self):
        if self.status is None and self.payment_status is None:
            raise ValueError("Provide a status or paymentStatus to update")
        return self
