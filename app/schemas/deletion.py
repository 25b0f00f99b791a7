import enum
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

class DeletionStatus(str, enum.Enum):
    completed = "completed"
    not_found = "not_found"
    pending = "pending"

class DeletionOutcome(BaseModel):
    deleted: bool
    message: str
    # store fault, as opposed to a user that simply had no data
    failed: bool = False

    @property
    def status(self) -> DeletionStatus:
        # faults are recorded as not_found; the message carries the failure
        return DeletionStatus.completed if self.deleted else DeletionStatus.not_found

class DeletionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    user_id: str = Field(alias="userId")
    status: DeletionStatus
    message: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_outcome(cls, user_id: str, outcome: DeletionOutcome) -> "DeletionRecord":
        return cls(user_id=user_id, status=outcome.status, message=outcome.message)

class CallbackResponse(BaseModel):
    url: str
    confirmation_code: str
