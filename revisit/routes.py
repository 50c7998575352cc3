import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from revisit import __version__, schemas
from revisit.config import Settings, get_settings
from revisit.limiter import get_rate_limit_decorator
from revisit.services import processor, scheduling

logger = logging.getLogger("revisit.routes")
router = APIRouter(prefix="/api", tags=["Reminders"])

_error_responses = {
    400: {"model": schemas.ErrorResponse},
    401: {"model": schemas.ErrorResponse},
    429: {"model": schemas.ErrorResponse},
    500: {"model": schemas.ErrorResponse},
}


@router.post(
    "/set-reminder",
    response_model=schemas.ScheduleResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    responses={207: {"model": schemas.ScheduleResponse}, **_error_responses},
)
@get_rate_limit_decorator()
async def set_reminder(
    request: Request,
    payload: schemas.ReminderCreate,
    x_timezone: Optional[str] = Header(None, alias="X-Timezone"),
):
    result = await scheduling.schedule(payload, timezone_hint=x_timezone)

    if result.confirmation_sent:
        body = schemas.ScheduleResponse(
            message="Reminder set successfully",
            scheduled_for=result.scheduled_for,
            timezone=result.timezone,
        )
        return body

    body = schemas.ScheduleResponse(
        message="Reminder set successfully but confirmation email failed to send",
        scheduled_for=result.scheduled_for,
        timezone=result.timezone,
        email_error=result.email_error,
    )
    return JSONResponse(status_code=207, content=body.model_dump(by_alias=True))


@router.post(
    "/check-reminders",
    response_model=schemas.ProcessResponse,
    response_model_by_alias=True,
    responses=_error_responses,
)
@get_rate_limit_decorator()
async def check_reminders(
    request: Request,
    x_cron_secret: Optional[str] = Header(None, alias="X-Cron-Secret"),
    settings: Settings = Depends(get_settings),
):
    result = await processor.run_due_check(x_cron_secret, settings.cron_secret)
    return schemas.ProcessResponse(
        processed_reminders=result.processed,
        results=[
            schemas.ReminderOutcomeOut(
                reminder_id=o.reminder_id,
                email=o.email,
                scheduled_for=o.scheduled_for,
                email_sent=o.email_sent,
                error=o.error,
            )
            for o in result.results
        ],
    )


@router.get("/health", response_model=schemas.HealthResponse)
@get_rate_limit_decorator()
async def health(request: Request):
    return {"status": "ok", "version": __version__}
