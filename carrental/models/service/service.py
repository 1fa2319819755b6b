from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class ServiceType(str, Enum):
    INSURANCE = "insurance"
    GPS = "gps"
    CHILD_SEAT = "childSeat"
    ADDITIONAL_DRIVER = "additionalDriver"
    OTHER = "other"


class AddService(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    type: ServiceType
    is_active: bool = Field(True, alias="isActive")

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}


class UpdateService(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    type: Optional[ServiceType] = None
    is_active: Optional[bool] = Field(None, alias="isActive")

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}
