"""Pydantic models for lawyer availability templates."""

from __future__ import annotations

from datetime import date, time
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from consult_core.models.consultations import StrictRequest


class DayOfWeek(str, Enum):
    """Template keys, Monday first to match ``date.weekday()``."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def for_date(cls, value: date) -> "DayOfWeek":
        return list(cls)[value.weekday()]


class AvailabilityWindowModel(StrictRequest):
    """One recurring window of a weekday."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    start_time: time = Field(..., description="Local wall-clock start")
    end_time: time = Field(..., description="Local wall-clock end")
    available: bool = Field(True, description="False marks a blocked window")

    @model_validator(mode="after")
    def check_order(self) -> "AvailabilityWindowModel":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityTemplateUpdate(StrictRequest):
    """Full replacement of a lawyer's weekly template."""

    days: Dict[DayOfWeek, List[AvailabilityWindowModel]] = Field(default_factory=dict)


class AvailabilityTemplateResponse(BaseModel):
    """A lawyer's weekly template, days without windows omitted."""

    lawyer_id: str
    days: Dict[DayOfWeek, List[AvailabilityWindowModel]] = Field(default_factory=dict)
