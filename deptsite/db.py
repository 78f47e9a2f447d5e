"""
Database abstraction for Postgres and an in-memory test implementation.

Both clients expose the same operations per content type: list (with an
optional published filter), get, create, update (partial merge) and
delete. Store errors are not caught here; they reach the caller as-is.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol, TypeVar

from pydantic import BaseModel
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    select,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from deptsite.schemas import (
    Contact,
    ContactCreate,
    Event,
    EventCreate,
    EventPatch,
    Faculty,
    FacultyCreate,
    FacultyPatch,
    Media,
    MediaCreate,
    MediaPatch,
    News,
    NewsCreate,
    NewsPatch,
    Note,
    NoteCreate,
    NotePatch,
    User,
    UserCreate,
)
from deptsite.types import ContactStatus

RecordT = TypeVar("RecordT", bound=BaseModel)


class DbClient(Protocol):
    """Interface for database access."""

    # Users
    def get_user(self, user_id: str) -> Optional[User]:
        ...

    def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def create_user(self, payload: UserCreate) -> User:
        ...

    # Faculty
    def list_faculty(self) -> list[Faculty]:
        ...

    def get_faculty(self, faculty_id: str) -> Optional[Faculty]:
        ...

    def create_faculty(self, payload: FacultyCreate) -> Faculty:
        ...

    def update_faculty(
        self, faculty_id: str, patch: FacultyPatch
    ) -> Optional[Faculty]:
        ...

    def delete_faculty(self, faculty_id: str) -> bool:
        ...

    # News
    def list_news(self, published: Optional[bool] = None) -> list[News]:
        ...

    def get_news(self, news_id: str) -> Optional[News]:
        ...

    def create_news(self, payload: NewsCreate) -> News:
        ...

    def update_news(self, news_id: str, patch: NewsPatch) -> Optional[News]:
        ...

    def delete_news(self, news_id: str) -> bool:
        ...

    # Events
    def list_events(self, published: Optional[bool] = None) -> list[Event]:
        ...

    def get_event(self, event_id: str) -> Optional[Event]:
        ...

    def create_event(self, payload: EventCreate) -> Event:
        ...

    def update_event(self, event_id: str, patch: EventPatch) -> Optional[Event]:
        ...

    def delete_event(self, event_id: str) -> bool:
        ...

    # Notes
    def list_notes(self, published: Optional[bool] = None) -> list[Note]:
        ...

    def list_notes_by_semester(self, semester: str) -> list[Note]:
        ...

    def get_note(self, note_id: str) -> Optional[Note]:
        ...

    def create_note(self, payload: NoteCreate) -> Note:
        ...

    def update_note(self, note_id: str, patch: NotePatch) -> Optional[Note]:
        ...

    def delete_note(self, note_id: str) -> bool:
        ...

    # Media
    def list_media(self, published: Optional[bool] = None) -> list[Media]:
        ...

    def list_media_by_category(self, category: str) -> list[Media]:
        ...

    def get_media(self, media_id: str) -> Optional[Media]:
        ...

    def create_media(self, payload: MediaCreate) -> Media:
        ...

    def update_media(self, media_id: str, patch: MediaPatch) -> Optional[Media]:
        ...

    def delete_media(self, media_id: str) -> bool:
        ...

    # Contacts
    def list_contacts(self) -> list[Contact]:
        ...

    def get_contact(self, contact_id: str) -> Optional[Contact]:
        ...

    def create_contact(self, payload: ContactCreate) -> Contact:
        ...

    def update_contact_status(
        self, contact_id: str, status: ContactStatus
    ) -> Optional[Contact]:
        ...

    def delete_contact(self, contact_id: str) -> bool:
        ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _stamp_publication(
    changes: dict[str, Any], current_published_at: Optional[datetime], now: datetime
) -> dict[str, Any]:
    """Keep ``published_at`` in step with the ``published`` flag of a news patch."""
    if "published" not in changes:
        return changes
    stamped = dict(changes)
    if stamped["published"]:
        stamped["published_at"] = current_published_at or now
    else:
        stamped["published_at"] = None
    return stamped


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.faculty: Dict[str, Faculty] = {}
        self.news: Dict[str, News] = {}
        self.events: Dict[str, Event] = {}
        self.notes: Dict[str, Note] = {}
        self.media: Dict[str, Media] = {}
        self.contacts: Dict[str, Contact] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        for table in (
            self.users,
            self.faculty,
            self.news,
            self.events,
            self.notes,
            self.media,
            self.contacts,
        ):
            table.clear()

    # Generic table helpers ------------------------------------------------

    @staticmethod
    def _list(
        table: Dict[str, RecordT],
        predicate: Callable[[RecordT], bool] = lambda _: True,
        sort_key: Callable[[RecordT], Any] = lambda r: r.created_at,
    ) -> list[RecordT]:
        # Newest insert first so that equal sort keys still come out newest first.
        rows = [r for r in reversed(list(table.values())) if predicate(r)]
        rows.sort(key=sort_key, reverse=True)
        return [r.model_copy() for r in rows]

    @staticmethod
    def _get(table: Dict[str, RecordT], row_id: str) -> Optional[RecordT]:
        record = table.get(row_id)
        return record.model_copy() if record else None

    @staticmethod
    def _insert(table: Dict[str, RecordT], record: RecordT) -> RecordT:
        table[record.id] = record
        return record.model_copy()

    @staticmethod
    def _update(
        table: Dict[str, RecordT], row_id: str, changes: dict[str, Any]
    ) -> Optional[RecordT]:
        current = table.get(row_id)
        if current is None:
            return None
        updated = current.model_copy(update=changes)
        table[row_id] = updated
        return updated.model_copy()

    @staticmethod
    def _delete(table: Dict[str, Any], row_id: str) -> bool:
        return table.pop(row_id, None) is not None

    @staticmethod
    def _published_is(published: Optional[bool]) -> Callable[[Any], bool]:
        if published is None:
            return lambda _: True
        return lambda r: r.published == published

    # Users ----------------------------------------------------------------

    def get_user(self, user_id: str) -> Optional[User]:
        return self._get(self.users, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        matches = self._list(self.users, lambda u: u.username == username)
        return matches[0] if matches else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        matches = self._list(self.users, lambda u: u.email == email)
        return matches[0] if matches else None

    def create_user(self, payload: UserCreate) -> User:
        record = User(id=_new_id(), created_at=_now(), **payload.model_dump())
        return self._insert(self.users, record)

    # Faculty --------------------------------------------------------------

    def list_faculty(self) -> list[Faculty]:
        return self._list(self.faculty)

    def get_faculty(self, faculty_id: str) -> Optional[Faculty]:
        return self._get(self.faculty, faculty_id)

    def create_faculty(self, payload: FacultyCreate) -> Faculty:
        now = _now()
        record = Faculty(
            id=_new_id(), created_at=now, updated_at=now, **payload.model_dump()
        )
        return self._insert(self.faculty, record)

    def update_faculty(
        self, faculty_id: str, patch: FacultyPatch
    ) -> Optional[Faculty]:
        return self._update(
            self.faculty, faculty_id, {**patch.changes(), "updated_at": _now()}
        )

    def delete_faculty(self, faculty_id: str) -> bool:
        return self._delete(self.faculty, faculty_id)

    # News -----------------------------------------------------------------

    def list_news(self, published: Optional[bool] = None) -> list[News]:
        return self._list(self.news, self._published_is(published))

    def get_news(self, news_id: str) -> Optional[News]:
        return self._get(self.news, news_id)

    def create_news(self, payload: NewsCreate) -> News:
        now = _now()
        record = News(
            id=_new_id(),
            created_at=now,
            updated_at=now,
            published_at=now if payload.published else None,
            **payload.model_dump(),
        )
        return self._insert(self.news, record)

    def update_news(self, news_id: str, patch: NewsPatch) -> Optional[News]:
        current = self.news.get(news_id)
        if current is None:
            return None
        now = _now()
        changes = _stamp_publication(patch.changes(), current.published_at, now)
        return self._update(self.news, news_id, {**changes, "updated_at": now})

    def delete_news(self, news_id: str) -> bool:
        return self._delete(self.news, news_id)

    # Events ---------------------------------------------------------------

    def list_events(self, published: Optional[bool] = None) -> list[Event]:
        return self._list(
            self.events,
            self._published_is(published),
            sort_key=lambda e: e.event_date,
        )

    def get_event(self, event_id: str) -> Optional[Event]:
        return self._get(self.events, event_id)

    def create_event(self, payload: EventCreate) -> Event:
        now = _now()
        record = Event(
            id=_new_id(), created_at=now, updated_at=now, **payload.model_dump()
        )
        return self._insert(self.events, record)

    def update_event(self, event_id: str, patch: EventPatch) -> Optional[Event]:
        return self._update(
            self.events, event_id, {**patch.changes(), "updated_at": _now()}
        )

    def delete_event(self, event_id: str) -> bool:
        return self._delete(self.events, event_id)

    # Notes ----------------------------------------------------------------

    def list_notes(self, published: Optional[bool] = None) -> list[Note]:
        return self._list(self.notes, self._published_is(published))

    def list_notes_by_semester(self, semester: str) -> list[Note]:
        return self._list(
            self.notes, lambda n: n.semester == semester and n.published
        )

    def get_note(self, note_id: str) -> Optional[Note]:
        return self._get(self.notes, note_id)

    def create_note(self, payload: NoteCreate) -> Note:
        now = _now()
        record = Note(
            id=_new_id(), created_at=now, updated_at=now, **payload.model_dump()
        )
        return self._insert(self.notes, record)

    def update_note(self, note_id: str, patch: NotePatch) -> Optional[Note]:
        return self._update(
            self.notes, note_id, {**patch.changes(), "updated_at": _now()}
        )

    def delete_note(self, note_id: str) -> bool:
        return self._delete(self.notes, note_id)

    # Media ----------------------------------------------------------------

    def list_media(self, published: Optional[bool] = None) -> list[Media]:
        return self._list(self.media, self._published_is(published))

    def list_media_by_category(self, category: str) -> list[Media]:
        return self._list(
            self.media, lambda m: m.category == category and m.published
        )

    def get_media(self, media_id: str) -> Optional[Media]:
        return self._get(self.media, media_id)

    def create_media(self, payload: MediaCreate) -> Media:
        now = _now()
        record = Media(
            id=_new_id(), created_at=now, updated_at=now, **payload.model_dump()
        )
        return self._insert(self.media, record)

    def update_media(self, media_id: str, patch: MediaPatch) -> Optional[Media]:
        return self._update(
            self.media, media_id, {**patch.changes(), "updated_at": _now()}
        )

    def delete_media(self, media_id: str) -> bool:
        return self._delete(self.media, media_id)

    # Contacts -------------------------------------------------------------

    def list_contacts(self) -> list[Contact]:
        return self._list(self.contacts)

    def get_contact(self, contact_id: str) -> Optional[Contact]:
        return self._get(self.contacts, contact_id)

    def create_contact(self, payload: ContactCreate) -> Contact:
        record = Contact(id=_new_id(), created_at=_now(), **payload.model_dump())
        return self._insert(self.contacts, record)

    def update_contact_status(
        self, contact_id: str, status: ContactStatus
    ) -> Optional[Contact]:
        return self._update(
            self.contacts, contact_id, {"status": ContactStatus(status).value}
        )

    def delete_contact(self, contact_id: str) -> bool:
        return self._delete(self.contacts, contact_id)


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    # Generic table helpers ------------------------------------------------

    def _list(
        self,
        row_cls: type,
        record_cls: type[RecordT],
        *criteria: Any,
        order_by: Any = None,
    ) -> list[RecordT]:
        stmt = select(row_cls)
        for criterion in criteria:
            stmt = stmt.where(criterion)
        order_col = order_by if order_by is not None else row_cls.created_at
        stmt = stmt.order_by(order_col.desc())
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [record_cls.model_validate(row) for row in rows]

    def _first(
        self, row_cls: type, record_cls: type[RecordT], *criteria: Any
    ) -> Optional[RecordT]:
        stmt = select(row_cls)
        for criterion in criteria:
            stmt = stmt.where(criterion)
        with self.Session() as session:
            row = session.execute(stmt.limit(1)).scalar_one_or_none()
            return record_cls.model_validate(row) if row else None

    def _get(
        self, row_cls: type, record_cls: type[RecordT], row_id: str
    ) -> Optional[RecordT]:
        with self.Session() as session:
            row = session.get(row_cls, row_id)
            return record_cls.model_validate(row) if row else None

    def _insert(
        self, row_cls: type, record_cls: type[RecordT], values: dict[str, Any]
    ) -> RecordT:
        with self.Session() as session:
            row = row_cls(id=_new_id(), **values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return record_cls.model_validate(row)

    def _update(
        self,
        row_cls: type,
        record_cls: type[RecordT],
        row_id: str,
        changes: dict[str, Any] | Callable[[Any], dict[str, Any]],
        touch: bool = True,
    ) -> Optional[RecordT]:
        with self.Session() as session:
            row = session.get(row_cls, row_id)
            if not row:
                return None
            values = changes(row) if callable(changes) else changes
            for key, value in values.items():
                setattr(row, key, value)
            if touch:
                row.updated_at = _now()
            session.commit()
            session.refresh(row)
            return record_cls.model_validate(row)

    def _delete(self, row_cls: type, row_id: str) -> bool:
        with self.Session() as session:
            result = session.execute(delete(row_cls).where(row_cls.id == row_id))
            session.commit()
            return (result.rowcount or 0) > 0

    @staticmethod
    def _published_is(row_cls: type, published: Optional[bool]) -> tuple:
        if published is None:
            return ()
        return (row_cls.published == published,)

    # Users ----------------------------------------------------------------

    def get_user(self, user_id: str) -> Optional[User]:
        return self._get(UserRow, User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self._first(UserRow, User, UserRow.username == username)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._first(UserRow, User, UserRow.email == email)

    def create_user(self, payload: UserCreate) -> User:
        return self._insert(
            UserRow, User, {**payload.model_dump(), "created_at": _now()}
        )

    # Faculty --------------------------------------------------------------

    def list_faculty(self) -> list[Faculty]:
        return self._list(FacultyRow, Faculty)

    def get_faculty(self, faculty_id: str) -> Optional[Faculty]:
        return self._get(FacultyRow, Faculty, faculty_id)

    def create_faculty(self, payload: FacultyCreate) -> Faculty:
        now = _now()
        return self._insert(
            FacultyRow,
            Faculty,
            {**payload.model_dump(), "created_at": now, "updated_at": now},
        )

    def update_faculty(
        self, faculty_id: str, patch: FacultyPatch
    ) -> Optional[Faculty]:
        return self._update(FacultyRow, Faculty, faculty_id, patch.changes())

    def delete_faculty(self, faculty_id: str) -> bool:
        return self._delete(FacultyRow, faculty_id)

    # News -----------------------------------------------------------------

    def list_news(self, published: Optional[bool] = None) -> list[News]:
        return self._list(NewsRow, News, *self._published_is(NewsRow, published))

    def get_news(self, news_id: str) -> Optional[News]:
        return self._get(NewsRow, News, news_id)

    def create_news(self, payload: NewsCreate) -> News:
        now = _now()
        return self._insert(
            NewsRow,
            News,
            {
                **payload.model_dump(),
                "published_at": now if payload.published else None,
                "created_at": now,
                "updated_at": now,
            },
        )

    def update_news(self, news_id: str, patch: NewsPatch) -> Optional[News]:
        changes = patch.changes()
        return self._update(
            NewsRow,
            News,
            news_id,
            lambda row: _stamp_publication(changes, row.published_at, _now()),
        )

    def delete_news(self, news_id: str) -> bool:
        return self._delete(NewsRow, news_id)

    # Events ---------------------------------------------------------------

    def list_events(self, published: Optional[bool] = None) -> list[Event]:
        return self._list(
            EventRow,
            Event,
            *self._published_is(EventRow, published),
            order_by=EventRow.event_date,
        )

    def get_event(self, event_id: str) -> Optional[Event]:
        return self._get(EventRow, Event, event_id)

    def create_event(self, payload: EventCreate) -> Event:
        now = _now()
        return self._insert(
            EventRow,
            Event,
            {**payload.model_dump(), "created_at": now, "updated_at": now},
        )

    def update_event(self, event_id: str, patch: EventPatch) -> Optional[Event]:
        return self._update(EventRow, Event, event_id, patch.changes())

    def delete_event(self, event_id: str) -> bool:
        return self._delete(EventRow, event_id)

    # Notes ----------------------------------------------------------------

    def list_notes(self, published: Optional[bool] = None) -> list[Note]:
        return self._list(NoteRow, Note, *self._published_is(NoteRow, published))

    def list_notes_by_semester(self, semester: str) -> list[Note]:
        return self._list(
            NoteRow,
            Note,
            NoteRow.semester == semester,
            NoteRow.published.is_(True),
        )

    def get_note(self, note_id: str) -> Optional[Note]:
        return self._get(NoteRow, Note, note_id)

    def create_note(self, payload: NoteCreate) -> Note:
        now = _now()
        return self._insert(
            NoteRow,
            Note,
            {**payload.model_dump(), "created_at": now, "updated_at": now},
        )

    def update_note(self, note_id: str, patch: NotePatch) -> Optional[Note]:
        return self._update(NoteRow, Note, note_id, patch.changes())

    def delete_note(self, note_id: str) -> bool:
        return self._delete(NoteRow, note_id)

    # Media ----------------------------------------------------------------

    def list_media(self, published: Optional[bool] = None) -> list[Media]:
        return self._list(
            MediaRow, Media, *self._published_is(MediaRow, published)
        )

    def list_media_by_category(self, category: str) -> list[Media]:
        return self._list(
            MediaRow,
            Media,
            MediaRow.category == category,
            MediaRow.published.is_(True),
        )

    def get_media(self, media_id: str) -> Optional[Media]:
        return self._get(MediaRow, Media, media_id)

    def create_media(self, payload: MediaCreate) -> Media:
        now = _now()
        return self._insert(
            MediaRow,
            Media,
            {**payload.model_dump(), "created_at": now, "updated_at": now},
        )

    def update_media(self, media_id: str, patch: MediaPatch) -> Optional[Media]:
        return self._update(MediaRow, Media, media_id, patch.changes())

    def delete_media(self, media_id: str) -> bool:
        return self._delete(MediaRow, media_id)

    # Contacts -------------------------------------------------------------

    def list_contacts(self) -> list[Contact]:
        return self._list(ContactRow, Contact)

    def get_contact(self, contact_id: str) -> Optional[Contact]:
        return self._get(ContactRow, Contact, contact_id)

    def create_contact(self, payload: ContactCreate) -> Contact:
        return self._insert(
            ContactRow,
            Contact,
            {
                **payload.model_dump(),
                "status": ContactStatus.UNREAD.value,
                "created_at": _now(),
            },
        )

    def update_contact_status(
        self, contact_id: str, status: ContactStatus
    ) -> Optional[Contact]:
        return self._update(
            ContactRow,
            Contact,
            contact_id,
            {"status": ContactStatus(status).value},
            touch=False,
        )

    def delete_contact(self, contact_id: str) -> bool:
        return self._delete(ContactRow, contact_id)


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False, unique=True)
    password = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), nullable=False)


class FacultyRow(Base):
    __tablename__ = "faculty"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    position = Column(Text, nullable=False)
    specialization = Column(Text, nullable=False)
    bio = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    office = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class NewsRow(Base):
    __tablename__ = "news"

    id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    image = Column(Text, nullable=True)
    category = Column(Text, nullable=False)
    published = Column(Boolean, nullable=False, default=False, index=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class EventRow(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    location = Column(Text, nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    time = Column(Text, nullable=True)
    category = Column(Text, nullable=False)
    image = Column(Text, nullable=True)
    registration_required = Column(Boolean, nullable=False, default=False)
    max_participants = Column(Integer, nullable=True)
    published = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class NoteRow(Base):
    __tablename__ = "notes"

    id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(Text, nullable=False)
    semester = Column(Text, nullable=False, index=True)
    file_url = Column(Text, nullable=False)
    file_name = Column(Text, nullable=False)
    file_size = Column(Text, nullable=True)
    file_type = Column(Text, nullable=True)
    uploaded_by = Column(String, ForeignKey("users.id"), nullable=True)
    published = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class MediaRow(Base):
    __tablename__ = "media"

    id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    media_url = Column(Text, nullable=False)
    media_type = Column(Text, nullable=False)
    category = Column(Text, nullable=False, index=True)
    alt = Column(Text, nullable=True)
    uploaded_by = Column(String, ForeignKey("users.id"), nullable=True)
    published = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class ContactRow(Base):
    __tablename__ = "contacts"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    subject = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="unread")
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
