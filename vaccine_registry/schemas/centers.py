"""Vaccination center schema."""

from pydantic import BaseModel, Field


class Center(BaseModel):
    """Vaccination center with a daily slot capacity."""

    center_id: str = Field(..., min_length=1)
    name: str
    location: str
    daily_capacity: int = Field(..., gt=0, strict=True)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.center_id} - {self.name} ({self.location}), Capacity: {self.daily_capacity}"
