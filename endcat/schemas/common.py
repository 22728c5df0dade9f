from pydantic import BaseModel, Field

from endcat.core.enums import OutcomeStatus
from endcat.utils.misc import get_utc_iso_now


class APIResponse[T](BaseModel):
    status: OutcomeStatus = OutcomeStatus.SUCCESS
    data: T | None = None
    message: str | None = None
    timestamp: str = Field(default_factory=get_utc_iso_now)
