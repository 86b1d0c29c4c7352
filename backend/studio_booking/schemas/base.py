"""
Base schemas shared by request and response models.
"""

from pydantic import BaseModel, ConfigDict


class StandardizedModel(BaseModel):
    """Base model with standardized enum and alias handling."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


class StrictRequestModel(BaseModel):
    """Request DTO base that forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
