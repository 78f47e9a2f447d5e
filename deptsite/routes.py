"""
HTTP routes for the department site API.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from deptsite.auth import (
    Identity,
    authenticate,
    authenticate_admin,
    check_credentials,
    hash_password,
    issue_token,
    optional_identity,
)
from deptsite.config import Settings, get_settings
from deptsite.db import DbClient
from deptsite.dependencies import get_db_client
from deptsite.schemas import (
    Contact,
    ContactCreate,
    ContactStatusUpdate,
    Event,
    EventCreate,
    EventPatch,
    Faculty,
    FacultyCreate,
    FacultyPatch,
    IdentityResponse,
    LoginRequest,
    LoginResponse,
    Media,
    MediaCreate,
    MediaPatch,
    MessageResponse,
    News,
    NewsCreate,
    NewsPatch,
    Note,
    NoteCreate,
    NotePatch,
    RegisterRequest,
    RegisterResponse,
    User,
    UserCreate,
    UserPublic,
)
from deptsite.types import Capability, Role

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_published_flag(value: Optional[str]) -> Optional[bool]:
    """Only the literal strings "true" and "false" select a filter."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _can_view_unpublished(viewer: Optional[Identity]) -> bool:
    return viewer is not None and viewer.can(Capability.VIEW_UNPUBLISHED)


def _list_visible(
    fetch: Callable[[Optional[bool]], list],
    published: Optional[str],
    viewer: Optional[Identity],
) -> list:
    flag = _parse_published_flag(published)
    if _can_view_unpublished(viewer):
        return fetch(flag)
    # Callers without draft access only ever see published rows.
    if flag is False:
        return []
    return fetch(True)


def _require_visible(record, viewer: Optional[Identity], detail: str):
    if record is None or (not record.published and not _can_view_unpublished(viewer)):
        raise HTTPException(status_code=404, detail=detail)
    return record


def _public_user(user: User) -> UserPublic:
    return UserPublic(
        id=user.id, username=user.username, email=user.email, role=user.role
    )


# ─── Auth ───────────────────────────────────────────────────────


@router.post("/auth/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    user = db.get_user_by_username(payload.username)
    if not check_credentials(user, payload.password, rounds=settings.bcrypt_rounds):
        logger.info(f"Failed login for {payload.username!r}")
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = issue_token(user, settings)
    return LoginResponse(token=token, user=_public_user(user))


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(
    payload: RegisterRequest,
    caller: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    if Role(payload.role) != Role.USER and not (
        caller and caller.can(Capability.MANAGE_USERS)
    ):
        raise HTTPException(
            status_code=403, detail="Admin access required to assign this role"
        )
    if db.get_user_by_username(payload.username):
        raise HTTPException(status_code=409, detail="Username already exists")
    if db.get_user_by_email(payload.email):
        raise HTTPException(status_code=409, detail="Email already exists")

    user = db.create_user(
        UserCreate(
            username=payload.username,
            email=payload.email,
            password=hash_password(payload.password, rounds=settings.bcrypt_rounds),
            role=payload.role,
        )
    )
    logger.info(f"Registered user {user.username} ({user.role})")
    return RegisterResponse(
        message="User created successfully", user=_public_user(user)
    )


@router.get("/auth/me", response_model=IdentityResponse)
def me(identity: Identity = Depends(authenticate)):
    return IdentityResponse(
        id=identity.id, username=identity.username, role=identity.role
    )


# ─── Faculty ────────────────────────────────────────────────────


@router.get("/faculty", response_model=list[Faculty])
def list_faculty(db: DbClient = Depends(get_db_client)):
    return db.list_faculty()


@router.get("/faculty/{faculty_id}", response_model=Faculty)
def get_faculty(faculty_id: str, db: DbClient = Depends(get_db_client)):
    member = db.get_faculty(faculty_id)
    if not member:
        raise HTTPException(status_code=404, detail="Faculty member not found")
    return member


@router.post("/faculty", response_model=Faculty, status_code=201)
def create_faculty(
    payload: FacultyCreate,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    member = db.create_faculty(payload)
    logger.info(f"Faculty member {member.id} created by {admin.username}")
    return member


@router.put("/faculty/{faculty_id}", response_model=Faculty)
def update_faculty(
    faculty_id: str,
    patch: FacultyPatch,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    member = db.update_faculty(faculty_id, patch)
    if not member:
        raise HTTPException(status_code=404, detail="Faculty member not found")
    return member


@router.delete("/faculty/{faculty_id}", response_model=MessageResponse)
def delete_faculty(
    faculty_id: str,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    if not db.delete_faculty(faculty_id):
        raise HTTPException(status_code=404, detail="Faculty member not found")
    logger.info(f"Faculty member {faculty_id} deleted by {admin.username}")
    return MessageResponse(message="Faculty member deleted successfully")


# ─── News ───────────────────────────────────────────────────────


@router.get("/news", response_model=list[News])
def list_news(
    published: Optional[str] = Query(None),
    viewer: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return _list_visible(db.list_news, published, viewer)


@router.get("/news/{news_id}", response_model=News)
def get_news(
    news_id: str,
    viewer: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return _require_visible(db.get_news(news_id), viewer, "News article not found")


@router.post("/news", response_model=News, status_code=201)
def create_news(
    payload: NewsCreate,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    article = db.create_news(payload)
    logger.info(f"News article {article.id} created by {admin.username}")
    return article


@router.put("/news/{news_id}", response_model=News)
def update_news(
    news_id: str,
    patch: NewsPatch,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    article = db.update_news(news_id, patch)
    if not article:
        raise HTTPException(status_code=404, detail="News article not found")
    return article


@router.delete("/news/{news_id}", response_model=MessageResponse)
def delete_news(
    news_id: str,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    if not db.delete_news(news_id):
        raise HTTPException(status_code=404, detail="News article not found")
    logger.info(f"News article {news_id} deleted by {admin.username}")
    return MessageResponse(message="News article deleted successfully")


# ─── Events ─────────────────────────────────────────────────────


@router.get("/events", response_model=list[Event])
def list_events(
    published: Optional[str] = Query(None),
    viewer: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return _list_visible(db.list_events, published, viewer)


@router.get("/events/{event_id}", response_model=Event)
def get_event(
    event_id: str,
    viewer: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return _require_visible(db.get_event(event_id), viewer, "Event not found")


@router.post("/events", response_model=Event, status_code=201)
def create_event(
    payload: EventCreate,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    event = db.create_event(payload)
    logger.info(f"Event {event.id} created by {admin.username}")
    return event


@router.put("/events/{event_id}", response_model=Event)
def update_event(
    event_id: str,
    patch: EventPatch,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    event = db.update_event(event_id, patch)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.delete("/events/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: str,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    if not db.delete_event(event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    logger.info(f"Event {event_id} deleted by {admin.username}")
    return MessageResponse(message="Event deleted successfully")


# ─── Notes ──────────────────────────────────────────────────────


@router.get("/notes", response_model=list[Note])
def list_notes(
    published: Optional[str] = Query(None),
    semester: Optional[str] = Query(None),
    viewer: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
):
    if semester:
        return db.list_notes_by_semester(semester)
    return _list_visible(db.list_notes, published, viewer)


@router.get("/notes/{note_id}", response_model=Note)
def get_note(
    note_id: str,
    viewer: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return _require_visible(db.get_note(note_id), viewer, "Note not found")


@router.post("/notes", response_model=Note, status_code=201)
def create_note(
    payload: NoteCreate,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    if payload.uploaded_by is None:
        payload = payload.model_copy(update={"uploaded_by": admin.id})
    note = db.create_note(payload)
    logger.info(f"Note {note.id} created by {admin.username}")
    return note


@router.put("/notes/{note_id}", response_model=Note)
def update_note(
    note_id: str,
    patch: NotePatch,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    note = db.update_note(note_id, patch)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.delete("/notes/{note_id}", response_model=MessageResponse)
def delete_note(
    note_id: str,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    if not db.delete_note(note_id):
        raise HTTPException(status_code=404, detail="Note not found")
    logger.info(f"Note {note_id} deleted by {admin.username}")
    return MessageResponse(message="Note deleted successfully")


# ─── Media ──────────────────────────────────────────────────────


@router.get("/media", response_model=list[Media])
def list_media(
    published: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    viewer: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
):
    if category:
        return db.list_media_by_category(category)
    return _list_visible(db.list_media, published, viewer)


@router.get("/media/{media_id}", response_model=Media)
def get_media(
    media_id: str,
    viewer: Optional[Identity] = Depends(optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return _require_visible(db.get_media(media_id), viewer, "Media not found")


@router.post("/media", response_model=Media, status_code=201)
def create_media(
    payload: MediaCreate,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    if payload.uploaded_by is None:
        payload = payload.model_copy(update={"uploaded_by": admin.id})
    item = db.create_media(payload)
    logger.info(f"Media {item.id} created by {admin.username}")
    return item


@router.put("/media/{media_id}", response_model=Media)
def update_media(
    media_id: str,
    patch: MediaPatch,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    item = db.update_media(media_id, patch)
    if not item:
        raise HTTPException(status_code=404, detail="Media not found")
    return item


@router.delete("/media/{media_id}", response_model=MessageResponse)
def delete_media(
    media_id: str,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    if not db.delete_media(media_id):
        raise HTTPException(status_code=404, detail="Media not found")
    logger.info(f"Media {media_id} deleted by {admin.username}")
    return MessageResponse(message="Media deleted successfully")


# ─── Contacts ───────────────────────────────────────────────────


@router.get("/contacts", response_model=list[Contact])
def list_contacts(
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    return db.list_contacts()


@router.get("/contacts/{contact_id}", response_model=Contact)
def get_contact(
    contact_id: str,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    contact = db.get_contact(contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.post("/contacts", response_model=Contact, status_code=201)
def create_contact(payload: ContactCreate, db: DbClient = Depends(get_db_client)):
    """
    Public contact form submission; no credentials required.
    """
    contact = db.create_contact(payload)
    logger.info(f"Contact message {contact.id} received")
    return contact


@router.put("/contacts/{contact_id}/status", response_model=Contact)
def update_contact_status(
    contact_id: str,
    payload: ContactStatusUpdate,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    contact = db.update_contact_status(contact_id, payload.status)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.delete("/contacts/{contact_id}", response_model=MessageResponse)
def delete_contact(
    contact_id: str,
    admin: Identity = Depends(authenticate_admin),
    db: DbClient = Depends(get_db_client),
):
    if not db.delete_contact(contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")
    return MessageResponse(message="Contact deleted successfully")


@router.get("/health")
def health():
    return {"status": "ok"}
