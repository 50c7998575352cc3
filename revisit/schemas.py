from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


_camel = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class ReminderCreate(BaseModel):
    # Required-ness is checked by the scheduling service so a missing field
    # yields "Missing required fields" instead of a framework 422.
    email: Optional[str] = Field(None, description="Recipient address")
    problem_url: Optional[str] = Field(None, alias="problemUrl", description="Link to the problem to revisit")
    problem_title: Optional[str] = Field(None, alias="problemTitle", description="Optional display title")
    reminder_minutes: Optional[Any] = Field(
        None,
        alias="reminderMinutes",
        description="Minutes as a number, or a string like '30', '30m', '2h', '1d'",
    )
    timezone: Optional[str] = Field(None, description="IANA timezone used to display the due time")

    model_config = _camel

    @field_validator("email", "problem_url", "problem_title", "timezone", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class ScheduleResponse(BaseModel):
    success: bool = Field(True, description="Whether the reminder was stored")
    message: str = Field(..., description="Human readable outcome")
    scheduled_for: str = Field(..., alias="scheduledFor", description="Due time formatted in the resolved timezone")
    timezone: str = Field(..., description="Timezone used for display")
    email_error: Optional[str] = Field(None, alias="emailError", description="Confirmation delivery failure, if any")

    model_config = _camel


class ReminderOutcomeOut(BaseModel):
    reminder_id: str = Field(..., alias="reminderId")
    email: str
    scheduled_for: str = Field(..., alias="scheduledFor")
    email_sent: bool = Field(..., alias="emailSent")
    error: Optional[str] = None

    model_config = _camel


class ProcessResponse(BaseModel):
    success: bool = True
    processed_reminders: int = Field(..., alias="processedReminders")
    results: List[ReminderOutcomeOut] = Field(default_factory=list)

    model_config = _camel


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
