"""
Pydantic schemas for the department site API.

Each content type has three shapes:

* ``<Entity>Create``: the fields a client may supply on creation.
* ``<Entity>Patch``: every field optional, used for partial updates.
  Columns that are required on create may be omitted but never nulled.
* ``<Entity>``: the persisted record including server-assigned fields.

JSON uses camelCase names; Python code uses snake_case attributes.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, ClassVar, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic.alias_generators import to_camel

from deptsite.types import ContactStatus, MediaType, Role


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class PatchModel(ApiModel):
    """Base for partial updates.

    Subclasses list the columns that are NOT NULL in the store; sending an
    explicit null for one of them is a validation error rather than a
    store failure.
    """

    not_null_fields: ClassVar[tuple[str, ...]] = ()

    @field_validator("*", mode="after")
    @classmethod
    def _reject_null_for_required(cls, value: Any, info) -> Any:
        if value is None and info.field_name in cls.not_null_fields:
            raise ValueError("may be omitted but not null")
        return value

    def changes(self) -> dict[str, Any]:
        """Only the keys the client actually sent."""
        return self.model_dump(exclude_unset=True)


def _coerce_datetime(value: Any) -> Any:
    """Accept ISO strings and date/datetime values only.

    Plain dates become midnight. Numbers (and numeric strings) are rejected
    rather than read as Unix timestamps.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if not isinstance(value, str):
        raise ValueError("must be an ISO 8601 date string")
    value = value.strip()
    if value.lstrip("+-").replace(".", "", 1).isdigit():
        raise ValueError("must be an ISO 8601 date string")
    if len(value) == 10:
        try:
            return datetime.combine(date.fromisoformat(value), datetime.min.time())
        except ValueError:
            return value
    return value


def _coerce_optional_datetime(value: Any) -> Any:
    if value is None or value == "":
        return None
    return _coerce_datetime(value)


def _assume_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ─── Users / auth ───────────────────────────────────────────────


class RegisterRequest(ApiModel):
    username: StrictStr
    email: StrictStr
    password: StrictStr
    role: Role = Role.USER


class LoginRequest(ApiModel):
    username: StrictStr
    password: StrictStr


class UserCreate(ApiModel):
    """Insertable user row; ``password`` already hashed."""

    username: StrictStr
    email: StrictStr
    password: StrictStr
    role: Role = Role.USER


class User(UserCreate):
    id: StrictStr
    created_at: datetime


class UserPublic(ApiModel):
    id: StrictStr
    username: StrictStr
    email: StrictStr
    role: Role


class LoginResponse(ApiModel):
    token: StrictStr
    user: UserPublic


class RegisterResponse(ApiModel):
    message: StrictStr
    user: UserPublic


class IdentityResponse(ApiModel):
    id: StrictStr
    username: StrictStr
    role: Role


class MessageResponse(ApiModel):
    message: StrictStr


# ─── Faculty ────────────────────────────────────────────────────


class FacultyCreate(ApiModel):
    name: StrictStr
    email: StrictStr
    position: StrictStr
    specialization: StrictStr
    bio: Optional[StrictStr] = None
    image: Optional[StrictStr] = None
    phone: Optional[StrictStr] = None
    office: Optional[StrictStr] = None


class FacultyPatch(PatchModel):
    not_null_fields = ("name", "email", "position", "specialization")

    name: Optional[StrictStr] = None
    email: Optional[StrictStr] = None
    position: Optional[StrictStr] = None
    specialization: Optional[StrictStr] = None
    bio: Optional[StrictStr] = None
    image: Optional[StrictStr] = None
    phone: Optional[StrictStr] = None
    office: Optional[StrictStr] = None


class Faculty(FacultyCreate):
    id: StrictStr
    created_at: datetime
    updated_at: datetime


# ─── News ───────────────────────────────────────────────────────


class NewsCreate(ApiModel):
    title: StrictStr
    excerpt: StrictStr
    content: StrictStr
    category: StrictStr
    image: Optional[StrictStr] = None
    published: StrictBool = False


class NewsPatch(PatchModel):
    not_null_fields = ("title", "excerpt", "content", "category", "published")

    title: Optional[StrictStr] = None
    excerpt: Optional[StrictStr] = None
    content: Optional[StrictStr] = None
    category: Optional[StrictStr] = None
    image: Optional[StrictStr] = None
    published: Optional[StrictBool] = None


class News(NewsCreate):
    id: StrictStr
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


# ─── Events ─────────────────────────────────────────────────────


class EventCreate(ApiModel):
    title: StrictStr
    description: StrictStr
    category: StrictStr
    event_date: datetime
    location: Optional[StrictStr] = None
    end_date: Optional[datetime] = None
    time: Optional[StrictStr] = None
    image: Optional[StrictStr] = None
    registration_required: StrictBool = False
    max_participants: Optional[StrictInt] = None
    published: StrictBool = False

    @field_validator("event_date", mode="before")
    @classmethod
    def _parse_event_date(cls, value: Any) -> Any:
        return _coerce_datetime(value)

    @field_validator("end_date", mode="before")
    @classmethod
    def _parse_end_date(cls, value: Any) -> Any:
        return _coerce_optional_datetime(value)

    @field_validator("event_date", "end_date", mode="after")
    @classmethod
    def _normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _assume_utc(value)


class EventPatch(PatchModel):
    not_null_fields = (
        "title",
        "description",
        "category",
        "event_date",
        "registration_required",
        "published",
    )

    title: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    category: Optional[StrictStr] = None
    event_date: Optional[datetime] = None
    location: Optional[StrictStr] = None
    end_date: Optional[datetime] = None
    time: Optional[StrictStr] = None
    image: Optional[StrictStr] = None
    registration_required: Optional[StrictBool] = None
    max_participants: Optional[StrictInt] = None
    published: Optional[StrictBool] = None

    @field_validator("event_date", mode="before")
    @classmethod
    def _parse_event_date(cls, value: Any) -> Any:
        return _coerce_datetime(value)

    @field_validator("end_date", mode="before")
    @classmethod
    def _parse_end_date(cls, value: Any) -> Any:
        return _coerce_optional_datetime(value)

    @field_validator("event_date", "end_date", mode="after")
    @classmethod
    def _normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _assume_utc(value)


class Event(EventCreate):
    id: StrictStr
    created_at: datetime
    updated_at: datetime


# ─── Notes ──────────────────────────────────────────────────────


class NoteCreate(ApiModel):
    title: StrictStr
    subject: StrictStr
    semester: StrictStr
    file_url: StrictStr
    file_name: StrictStr
    description: Optional[StrictStr] = None
    file_size: Optional[StrictStr] = None
    file_type: Optional[StrictStr] = None
    uploaded_by: Optional[StrictStr] = None
    published: StrictBool = False


class NotePatch(PatchModel):
    not_null_fields = (
        "title",
        "subject",
        "semester",
        "file_url",
        "file_name",
        "published",
    )

    title: Optional[StrictStr] = None
    subject: Optional[StrictStr] = None
    semester: Optional[StrictStr] = None
    file_url: Optional[StrictStr] = None
    file_name: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    file_size: Optional[StrictStr] = None
    file_type: Optional[StrictStr] = None
    uploaded_by: Optional[StrictStr] = None
    published: Optional[StrictBool] = None


class Note(NoteCreate):
    id: StrictStr
    created_at: datetime
    updated_at: datetime


# ─── Media ──────────────────────────────────────────────────────


class MediaCreate(ApiModel):
    title: StrictStr
    media_url: StrictStr
    media_type: MediaType
    category: StrictStr
    description: Optional[StrictStr] = None
    alt: Optional[StrictStr] = None
    uploaded_by: Optional[StrictStr] = None
    published: StrictBool = False


class MediaPatch(PatchModel):
    not_null_fields = ("title", "media_url", "media_type", "category", "published")

    title: Optional[StrictStr] = None
    media_url: Optional[StrictStr] = None
    media_type: Optional[MediaType] = None
    category: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    alt: Optional[StrictStr] = None
    uploaded_by: Optional[StrictStr] = None
    published: Optional[StrictBool] = None


class Media(MediaCreate):
    id: StrictStr
    created_at: datetime
    updated_at: datetime


# ─── Contacts ───────────────────────────────────────────────────


class ContactCreate(ApiModel):
    # New messages start unread; status changes go through ContactStatusUpdate.
    name: StrictStr
    email: StrictStr
    subject: StrictStr
    message: StrictStr


class ContactStatusUpdate(ApiModel):
    status: ContactStatus


class Contact(ContactCreate):
    id: StrictStr
    status: ContactStatus = ContactStatus.UNREAD
    created_at: datetime
