from typing import Optional
from pydantic import BaseModel, Field


class CarReview(BaseModel):
    car_id: str = Field(..., alias="carId")
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)
    # only read for anonymous submissions
    user_id: Optional[str] = Field(None, alias="userId")
    user_name: Optional[str] = Field(None, alias="userName")
    user_image: Optional[str] = Field(None, alias="userImage")

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}


class UpdateReview(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=1)

    model_config = {"str_strip_whitespace": True}
