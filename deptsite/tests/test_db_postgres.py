import unittest
from datetime import datetime, timezone

from deptsite.db import InMemoryDbClient, PostgresDbClient
from deptsite.schemas import (
    ContactCreate,
    EventCreate,
    EventPatch,
    FacultyCreate,
    FacultyPatch,
    MediaCreate,
    NewsCreate,
    NewsPatch,
    NoteCreate,
    NotePatch,
    UserCreate,
)
from deptsite.types import ContactStatus, Role


def _note(**overrides):
    values = dict(
        title="Operating Systems Unit 2",
        subject="Operating Systems",
        semester="Semester 3",
        file_url="https://files.example.test/os-unit2.pdf",
        file_name="os-unit2.pdf",
        file_type="application/pdf",
    )
    values.update(overrides)
    return NoteCreate(**values)


def _event(**overrides):
    values = dict(
        title="Hackathon",
        description="24 hours of building",
        category="Competition",
        event_date=datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return EventCreate(**values)


def _news(**overrides):
    values = dict(
        title="New lab opens",
        excerpt="GPU lab",
        content="The department opened a new GPU lab.",
        category="Infrastructure",
    )
    values.update(overrides)
    return NewsCreate(**values)


class DbClientContract:
    """
    Behaviour every DbClient must share. Subclasses provide ``make_client``.
    """

    def make_client(self):
        raise NotImplementedError

    def setUp(self):
        self.db = self.make_client()

    def test_user_lookup(self):
        user = self.db.create_user(
            UserCreate(
                username="admin", email="admin@dept.test", password="hash", role=Role.ADMIN
            )
        )
        self.assertEqual(user.role, "admin")
        self.assertEqual(self.db.get_user(user.id).username, "admin")
        self.assertEqual(self.db.get_user_by_username("admin").id, user.id)
        self.assertEqual(self.db.get_user_by_email("admin@dept.test").id, user.id)
        self.assertIsNone(self.db.get_user_by_username("nobody"))
        self.assertIsNone(self.db.get_user("missing"))

    def test_create_then_get_returns_supplied_fields(self):
        payload = _event(location="Auditorium", max_participants=50, published=True)
        created = self.db.create_event(payload)
        fetched = self.db.get_event(created.id)
        for key, value in payload.model_dump().items():
            self.assertEqual(getattr(fetched, key), value, key)
        self.assertTrue(created.id)

    def test_ids_are_unique(self):
        first = self.db.create_note(_note())
        second = self.db.create_note(_note())
        self.assertNotEqual(first.id, second.id)

    def test_published_filter(self):
        self.db.create_note(_note(title="public", published=True))
        self.db.create_note(_note(title="draft"))

        self.assertEqual([n.title for n in self.db.list_notes(True)], ["public"])
        self.assertEqual([n.title for n in self.db.list_notes(False)], ["draft"])
        self.assertEqual(len(self.db.list_notes()), 2)

    def test_notes_by_semester_are_published_only(self):
        self.db.create_note(_note(title="wanted", published=True))
        self.db.create_note(_note(title="draft"))
        self.db.create_note(_note(title="other", semester="Semester 5", published=True))

        titles = [n.title for n in self.db.list_notes_by_semester("Semester 3")]
        self.assertEqual(titles, ["wanted"])

    def test_media_by_category_are_published_only(self):
        base = dict(
            title="Prize day",
            media_url="https://cdn.example.test/p.jpg",
            media_type="image",
            category="Awards",
        )
        self.db.create_media(MediaCreate(**base, published=True))
        self.db.create_media(MediaCreate(**base))
        self.db.create_media(MediaCreate(**{**base, "category": "Events"}, published=True))

        items = self.db.list_media_by_category("Awards")
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].media_type, "image")
        self.assertTrue(items[0].published)

    def test_partial_update_preserves_other_fields(self):
        note = self.db.create_note(_note(description="first draft"))
        updated = self.db.update_note(note.id, NotePatch(title="new"))

        self.assertEqual(updated.title, "new")
        self.assertEqual(updated.description, "first draft")
        self.assertEqual(updated.file_url, note.file_url)
        self.assertEqual(updated.semester, note.semester)
        self.assertEqual(updated.created_at, note.created_at)
        self.assertGreaterEqual(updated.updated_at, note.updated_at)

    def test_update_can_clear_nullable_field(self):
        member = self.db.create_faculty(
            FacultyCreate(
                name="Dr. Iyer",
                email="iyer@dept.test",
                position="Associate Professor",
                specialization="Databases",
                office="C-101",
            )
        )
        updated = self.db.update_faculty(member.id, FacultyPatch(office=None))
        self.assertIsNone(updated.office)
        self.assertEqual(updated.name, "Dr. Iyer")

    def test_update_missing_returns_none(self):
        self.assertIsNone(self.db.update_note("missing", NotePatch(title="x")))
        self.assertIsNone(
            self.db.update_contact_status("missing", ContactStatus.READ)
        )

    def test_delete_is_idempotent(self):
        event = self.db.create_event(_event())
        self.assertTrue(self.db.delete_event(event.id))
        self.assertFalse(self.db.delete_event(event.id))
        self.assertIsNone(self.db.get_event(event.id))

    def test_events_newest_event_date_first(self):
        self.db.create_event(_event(title="march"))
        self.db.create_event(
            _event(title="june", event_date=datetime(2024, 6, 1, tzinfo=timezone.utc))
        )
        self.db.create_event(
            _event(title="january", event_date=datetime(2024, 1, 5, tzinfo=timezone.utc))
        )
        self.assertEqual(
            [e.title for e in self.db.list_events()], ["june", "march", "january"]
        )

    def test_update_event_date(self):
        event = self.db.create_event(_event())
        moved = datetime(2024, 4, 1, 14, 30, tzinfo=timezone.utc)
        updated = self.db.update_event(event.id, EventPatch(event_date=moved))
        self.assertEqual(updated.event_date, moved)
        self.assertEqual(self.db.get_event(event.id).event_date, moved)

    def test_news_published_at_follows_flag(self):
        draft = self.db.create_news(_news())
        self.assertIsNone(draft.published_at)

        live = self.db.update_news(draft.id, NewsPatch(published=True))
        self.assertTrue(live.published)
        self.assertIsNotNone(live.published_at)

        edited = self.db.update_news(draft.id, NewsPatch(title="Renamed"))
        self.assertEqual(edited.published_at, live.published_at)

        pulled = self.db.update_news(draft.id, NewsPatch(published=False))
        self.assertIsNone(pulled.published_at)

    def test_news_created_published_is_stamped(self):
        article = self.db.create_news(_news(published=True))
        self.assertIsNotNone(article.published_at)

    def test_contact_lifecycle(self):
        contact = self.db.create_contact(
            ContactCreate(name="A", email="a@x.com", subject="general", message="hi")
        )
        self.assertEqual(contact.status, "unread")

        updated = self.db.update_contact_status(contact.id, ContactStatus.REPLIED)
        self.assertEqual(updated.status, "replied")
        self.assertEqual(updated.message, "hi")
        self.assertEqual([c.id for c in self.db.list_contacts()], [contact.id])

        self.assertTrue(self.db.delete_contact(contact.id))
        self.assertEqual(self.db.list_contacts(), [])


class InMemoryDbClientTests(DbClientContract, unittest.TestCase):
    def make_client(self):
        return InMemoryDbClient()

    def test_reset_clears_everything(self):
        self.db.create_note(_note())
        self.db.create_news(_news())
        self.db.reset()
        self.assertEqual(self.db.list_notes(), [])
        self.assertEqual(self.db.list_news(), [])

    def test_returned_records_are_copies(self):
        note = self.db.create_note(_note())
        note.title = "mutated"
        self.assertEqual(self.db.get_note(note.id).title, "Operating Systems Unit 2")


class PostgresDbClientTests(DbClientContract, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def make_client(self):
        return PostgresDbClient("sqlite+pysqlite:///:memory:")

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            PostgresDbClient("")


if __name__ == "__main__":
    unittest.main()
