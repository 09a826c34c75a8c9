"""
Response models for the feedback thread API.

Every payload the client receives is validated against these models; a
response that does not match is rejected instead of being patched up with
defaults.
"""

from datetime import datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from campusweb.core.errors import ServiceError


Status = Literal["open", "in_review", "waiting_for_user", "resolved", "closed"]
Priority = Literal["low", "medium", "high"]
ThreadType = Literal["general", "academic", "technical", "complaint", "suggestion"]
Role = Literal["student", "faculty", "admin"]
TargetRole = Literal["admin", "faculty"]

T = TypeVar("T")


class MalformedResponse(ServiceError):
    """The server answered with a payload that does not match the schema."""

    kind = "malformed_response"
    status_code = 502
    default_message = "The server returned an unexpected response."


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class UserRef(Schema):
    id: int
    username: str
    name: str


class ThreadSummary(Schema):
    """A thread without its message bodies."""
    id: int
    title: str = Field(..., min_length=1, max_length=200)
    type: ThreadType
    priority: Priority
    status: Status
    created_by: Optional[UserRef] = None
    created_by_role: Role
    target_role: TargetRole
    target_user_id: Optional[int] = None
    target_user: Optional[UserRef] = None
    message_count: int = Field(..., ge=0)
    last_message_at: datetime
    migrated_from_v1: bool = False
    deleted: bool = False
    deleted_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _target_consistent(self):
        if (self.target_role == "faculty") != (self.target_user_id is not None):
            raise ValueError("targetUserId must be set exactly when targetRole is faculty")
        return self


class Message(Schema):
    id: int
    thread_id: int
    sender_id: int
    sender: Optional[UserRef] = None
    sender_role: Role
    message: str = Field(..., min_length=1, max_length=2000)
    is_initial_message: bool = False
    created_at: datetime


class AuditEntry(Schema):
    id: int
    thread_id: int
    action: str
    performed_by: Optional[UserRef] = None
    performed_by_role: Role
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class ThreadDetail(Schema):
    thread: ThreadSummary
    messages: List[Message]
    audit_log: List[AuditEntry]


class StatusStats(BaseModel):
    """Per-status thread counts; keys are the raw status tags."""
    open: int = Field(..., ge=0)
    in_review: int = Field(..., ge=0)
    waiting_for_user: int = Field(..., ge=0)
    resolved: int = Field(..., ge=0)
    closed: int = Field(..., ge=0)


class Envelope(Schema, Generic[T]):
    """Standard ``{success, data, message?}`` wrapper."""
    success: bool
    data: T
    message: Optional[str] = None


class ThreadList(Envelope[List[ThreadSummary]]):
    stats: StatusStats
    count: int
    total: int
    pages: int
    current_page: int


class ReplyData(Schema):
    message: Message
    thread: ThreadSummary


class RecordOutcome(Schema):
    legacy_id: int
    outcome: Literal["migrated", "skipped", "failed"]
    thread_id: Optional[int] = None
    error: Optional[str] = None


class MigrationSummary(Schema):
    migrated: int
    skipped: int
    failed: int
    total: int
    outcomes: List[RecordOutcome] = Field(default_factory=list)


class FacultyMember(Schema):
    id: int
    name: str
    username: str
    department: str = ""
    designation: str = ""
