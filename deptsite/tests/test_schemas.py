import unittest
from datetime import date, datetime, timezone

from pydantic import ValidationError

from deptsite.schemas import (
    Contact,
    ContactCreate,
    EventCreate,
    EventPatch,
    MediaCreate,
    NewsPatch,
    NoteCreate,
    NotePatch,
)


EVENT = {
    "title": "Seminar",
    "description": "Guest lecture",
    "category": "Seminar",
    "eventDate": "2024-03-10T10:00:00Z",
}


def _error_fields(exc: ValidationError) -> list[str]:
    return sorted(".".join(str(p) for p in e["loc"]) for e in exc.errors())


class EventDateTests(unittest.TestCase):
    def test_iso_string(self):
        event = EventCreate.model_validate(EVENT)
        self.assertEqual(
            event.event_date, datetime(2024, 3, 10, 10, 0, tzinfo=timezone.utc)
        )
        self.assertIsNone(event.end_date)

    def test_date_only_string_is_midnight_utc(self):
        event = EventCreate.model_validate({**EVENT, "eventDate": " 2024-03-10 "})
        self.assertEqual(event.event_date, datetime(2024, 3, 10, tzinfo=timezone.utc))

    def test_date_object(self):
        event = EventCreate.model_validate({**EVENT, "eventDate": date(2024, 3, 10)})
        self.assertEqual(event.event_date, datetime(2024, 3, 10, tzinfo=timezone.utc))

    def test_offsets_are_kept(self):
        event = EventCreate.model_validate(
            {**EVENT, "eventDate": "2024-03-10T10:00:00+05:30"}
        )
        self.assertEqual(event.event_date.utcoffset().total_seconds(), 5.5 * 3600)

    def test_unparseable_date(self):
        with self.assertRaises(ValidationError) as ctx:
            EventCreate.model_validate({**EVENT, "eventDate": "2024-13-45"})
        self.assertEqual(_error_fields(ctx.exception), ["eventDate"])

    def test_numbers_are_not_timestamps(self):
        for value in (1700000000, 1700000000.5, "1700000000", True):
            with self.assertRaises(ValidationError) as ctx:
                EventCreate.model_validate({**EVENT, "eventDate": value})
            self.assertEqual(_error_fields(ctx.exception), ["eventDate"])

    def test_numeric_end_date_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            EventPatch.model_validate({"endDate": 0})
        self.assertEqual(_error_fields(ctx.exception), ["endDate"])

    def test_missing_event_date(self):
        payload = {k: v for k, v in EVENT.items() if k != "eventDate"}
        with self.assertRaises(ValidationError) as ctx:
            EventCreate.model_validate(payload)
        self.assertEqual(_error_fields(ctx.exception), ["eventDate"])

    def test_blank_end_date_is_absent(self):
        for blank in ("", None):
            event = EventCreate.model_validate({**EVENT, "endDate": blank})
            self.assertIsNone(event.end_date)

    def test_end_date_parsed(self):
        event = EventCreate.model_validate({**EVENT, "endDate": "2024-03-11"})
        self.assertEqual(event.end_date, datetime(2024, 3, 11, tzinfo=timezone.utc))

    def test_patch_parses_dates_the_same_way(self):
        patch = EventPatch.model_validate({"eventDate": "2024-05-01", "endDate": ""})
        self.assertEqual(
            patch.changes(),
            {"event_date": datetime(2024, 5, 1, tzinfo=timezone.utc), "end_date": None},
        )

    def test_patch_rejects_null_event_date(self):
        with self.assertRaises(ValidationError) as ctx:
            EventPatch.model_validate({"eventDate": None})
        self.assertEqual(_error_fields(ctx.exception), ["eventDate"])


class CreateValidationTests(unittest.TestCase):
    def test_missing_fields_are_all_reported(self):
        with self.assertRaises(ValidationError) as ctx:
            NoteCreate.model_validate({})
        self.assertEqual(
            _error_fields(ctx.exception),
            ["fileName", "fileUrl", "semester", "subject", "title"],
        )

    def test_wrong_types_are_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            EventCreate.model_validate(
                {**EVENT, "title": 5, "registrationRequired": "sometimes"}
            )
        self.assertEqual(
            _error_fields(ctx.exception), ["registrationRequired", "title"]
        )

    def test_scalars_are_not_coerced(self):
        with self.assertRaises(ValidationError) as ctx:
            EventCreate.model_validate(
                {
                    **EVENT,
                    "maxParticipants": "12",
                    "published": "yes",
                    "registrationRequired": 1,
                }
            )
        self.assertEqual(
            _error_fields(ctx.exception),
            ["maxParticipants", "published", "registrationRequired"],
        )

    def test_patch_scalars_are_not_coerced(self):
        with self.assertRaises(ValidationError) as ctx:
            NotePatch.model_validate({"published": "true", "fileSize": 2048})
        self.assertEqual(_error_fields(ctx.exception), ["fileSize", "published"])

    def test_bool_is_not_an_int(self):
        with self.assertRaises(ValidationError) as ctx:
            EventPatch.model_validate({"maxParticipants": True})
        self.assertEqual(_error_fields(ctx.exception), ["maxParticipants"])

    def test_snake_case_names_also_accepted(self):
        note = NoteCreate(
            title="t",
            subject="s",
            semester="Semester 1",
            file_url="https://files.example.test/a.pdf",
            file_name="a.pdf",
        )
        self.assertFalse(note.published)
        self.assertEqual(
            note.model_dump(by_alias=True)["fileUrl"], "https://files.example.test/a.pdf"
        )

    def test_media_type_is_closed(self):
        with self.assertRaises(ValidationError) as ctx:
            MediaCreate.model_validate(
                {
                    "title": "t",
                    "mediaUrl": "https://cdn.example.test/a.mp3",
                    "mediaType": "audio",
                    "category": "Events",
                }
            )
        self.assertEqual(_error_fields(ctx.exception), ["mediaType"])


class PatchTests(unittest.TestCase):
    def test_changes_only_contains_sent_keys(self):
        patch = NotePatch.model_validate({"title": "new"})
        self.assertEqual(patch.changes(), {"title": "new"})

    def test_null_for_optional_column_clears_it(self):
        patch = NotePatch.model_validate({"description": None})
        self.assertEqual(patch.changes(), {"description": None})

    def test_null_for_required_column_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            NotePatch.model_validate({"title": None, "fileUrl": None})
        self.assertEqual(_error_fields(ctx.exception), ["fileUrl", "title"])

    def test_null_published_is_rejected(self):
        with self.assertRaises(ValidationError):
            NewsPatch.model_validate({"published": None})


class ContactSchemaTests(unittest.TestCase):
    def test_status_is_not_client_settable(self):
        payload = ContactCreate.model_validate(
            {
                "name": "A",
                "email": "a@x.com",
                "subject": "general",
                "message": "hi",
                "status": "replied",
            }
        )
        self.assertNotIn("status", payload.model_dump())

    def test_record_defaults_to_unread(self):
        contact = Contact(
            id="c1",
            name="A",
            email="a@x.com",
            subject="general",
            message="hi",
            created_at=datetime.now(timezone.utc),
        )
        self.assertEqual(contact.status, "unread")


if __name__ == "__main__":
    unittest.main()
