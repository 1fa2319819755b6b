from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class CarCategory(str, Enum):
    ECONOMY = "economy"
    COMPACT = "compact"
    MIDSIZE = "midsize"
    LUXURY = "luxury"
    SUV = "suv"
    VAN = "van"
    SPORTS = "sports"


class CarType(str, Enum):
    SEDAN = "sedan"
    HATCHBACK = "hatchback"
    SUV = "suv"
    CROSSOVER = "crossover"
    COUPE = "coupe"
    CONVERTIBLE = "convertible"
    MINIVAN = "minivan"
    PICKUP = "pickup"


class Transmission(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class FuelType(str, Enum):
    PETROL = "petrol"
    DIESEL = "diesel"
    ELECTRIC = "electric"
    HYBRID = "hybrid"


class AddCar(BaseModel):
    name: str = Field(..., min_length=1)
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: int
    category: CarCategory
    type: CarType
    transmission: Transmission
    fuel_type: FuelType = Field(..., alias="fuelType")
    seats: int = Field(..., ge=2, le=8)
    price_per_day: float = Field(..., ge=0, alias="pricePerDay")
    photos: List[str] = []
    description: str
    features: List[str] = []
    location: str
    mileage: float
    stock: int = Field(1, ge=0)
    availability: bool = True

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}

    @field_validator("features", mode="before")
    @classmethod
    def split_features(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value


class UpdateCar(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    category: Optional[CarCategory] = None
    type: Optional[CarType] = None
    transmission: Optional[Transmission] = None
    fuel_type: Optional[FuelType] = Field(None, alias="fuelType")
    seats: Optional[int] = Field(None, ge=2, le=8)
    price_per_day: Optional[float] = Field(None, ge=0, alias="pricePerDay")
    photos: Optional[List[str]] = None
    description: Optional[str] = None
    features: Optional[List[str]] = None
    location: Optional[str] = None
    mileage: Optional[float] = None
    stock: Optional[int] = Field(None, ge=0)
    availability: Optional[bool] = None

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}

    @field_validator("features", mode="before")
    @classmethod
    def parse_features(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value
