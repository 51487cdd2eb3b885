from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Schedule(BaseModel):
    """Allowed sending window: an inclusive hour range plus optional weekdays (0 = Sunday)."""

    model_config = ConfigDict(frozen=True)

    start_hour: int = Field(default=8, ge=0, le=23)
    end_hour: int = Field(default=18, ge=0, le=23)
    allowed_weekdays: frozenset[int] = Field(default_factory=frozenset)

    @field_validator("allowed_weekdays")
    @classmethod
    def _weekdays_in_range(cls, value: frozenset[int]) -> frozenset[int]:
        invalid = sorted(day for day in value if not 0 <= day <= 6)
        if invalid:
            raise ValueError(f"weekdays must be within 0-6, got {invalid}")
        return value

    @model_validator(mode="after")
    def _start_not_after_end(self) -> Schedule:
        if self.start_hour > self.end_hour:
            raise ValueError("start_hour must not be greater than end_hour")
        return self


SCHEDULE_PRESETS: dict[str, Schedule] = {
    "business": Schedule(start_hour=8, end_hour=18),
    "extended": Schedule(start_hour=7, end_hour=22),
    "full": Schedule(start_hour=0, end_hour=23),
    "custom": Schedule(start_hour=9, end_hour=17, allowed_weekdays=frozenset({1, 2, 3, 4, 5})),
}
