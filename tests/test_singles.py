import pytest
from fastapi import HTTPException

from musicscan.modules.singles.schemas import SingleImport
from musicscan.modules.singles.service import SinglesService, single_key
from tests.fakes import FakeAPIError


def _master(id, artist, title, year=1980, artwork="https://img/large.jpg", **extra):
    return {"id": id, "artist_name": artist, "title": title, "year": year, "status": "pending",
            "artwork_large": artwork, **extra}


def test_single_key_normalizes_case_and_whitespace():
    assert single_key(" Queen ", "Radio Ga Ga") == single_key("queen", "radio ga ga ")


class TestProcessMasterSingles:
    def test_no_pending(self, db):
        result = SinglesService(db).process_master_singles()
        assert result.processed == 0
        assert result.message == "No pending singles"

    def test_queues_new_singles_newest_year_first(self, db):
        db.insert_rows("master_singles", [
            _master("m1", "Queen", "Under Pressure", 1981),
            _master("m2", "Bowie", "Heroes", 1977),
            _master("m3", "Prince", "Kiss", None),
            _master("m4", "Madonna", "Vogue", 1990, artwork=None),
        ])

        result = SinglesService(db).process_master_singles(batch_size=2)

        assert result.inserted == 2
        queued = db.rows("singles_import_queue")
        assert [q["single_name"] for q in queued] == ["Under Pressure", "Heroes"]
        assert all(q["priority"] == 50 and q["max_attempts"] == 3 and q["status"] == "pending" for q in queued)
        assert len({q["batch_id"] for q in queued}) == 1
        statuses = {m["id"]: m["status"] for m in db.rows("master_singles")}
        assert statuses == {"m1": "queued", "m2": "queued", "m3": "pending", "m4": "pending"}

    def test_skips_singles_that_already_have_stories(self, db):
        db.insert_rows("master_singles", [_master("m1", "Queen", "Bohemian Rhapsody")])
        db.insert_rows("music_stories", {"artist_name": "queen", "single_name": "bohemian rhapsody"})

        result = SinglesService(db).process_master_singles()

        assert result.skipped == 1
        assert db.rows("master_singles")[0]["status"] == "skipped"
        assert db.rows("singles_import_queue") == []

    def test_duplicate_insert_marks_skipped(self, db):
        db.unique["singles_import_queue"] = [("discogs_id",)]
        db.insert_rows("singles_import_queue", {"artist": "Other", "single_name": "Other", "discogs_id": 42})
        db.insert_rows("master_singles", [_master("m1", "Queen", "Innuendo", discogs_release_id=42)])

        result = SinglesService(db).process_master_singles()

        assert result.skipped == 1
        assert result.inserted == 0
        assert db.rows("master_singles")[0]["status"] == "skipped"

    def test_other_insert_errors_mark_failed(self, db):
        db.insert_rows("master_singles", [_master("m1", "Queen", "Innuendo")])
        db.failures[("singles_import_queue", "insert")] = FakeAPIError("connection reset")

        result = SinglesService(db).process_master_singles()

        assert result.failed == 1
        single = db.rows("master_singles")[0]
        assert single["status"] == "failed"
        assert single["error_message"] == "connection reset"

    def test_batch_size_is_clamped(self, db):
        db.insert_rows("master_singles", [_master(f"m{i}", f"Artist {i}", f"Song {i}") for i in range(60)])
        result = SinglesService(db).process_master_singles(batch_size=500)
        assert result.inserted == 50


class TestImportSingles:
    def test_collects_invalid_items(self, db):
        singles = [
            SingleImport(artist="Queen", single_name="Radio Ga Ga", year=1984),
            SingleImport(artist="", single_name="No artist"),
            SingleImport(artist="queen", single_name="radio ga ga"),
        ]

        result = SinglesService(db).import_singles("user-1", singles)

        assert result.imported == 1
        assert result.invalid == 2
        reasons = [i["reason"] for i in result.invalid_items]
        assert reasons == ["artist and single_name are required", "duplicate in import"]
        row = db.rows("singles_import_queue")[0]
        assert row["user_id"] == "user-1"
        assert row["year"] == 1984

    def test_database_error_is_500(self, db):
        db.failures[("singles_import_queue", "insert")] = FakeAPIError("timeout")
        with pytest.raises(HTTPException) as exc:
            SinglesService(db).import_singles("user-1", [SingleImport(artist="A", single_name="B")])
        assert exc.value.status_code == 500


def test_import_route_requires_admin(client, user_headers, admin_headers):
    body = {"singles": [{"artist": "Queen", "single_name": "Innuendo"}]}
    assert client.post("/api/v1/singles/import", json=body, headers=user_headers).status_code == 403
    response = client.post("/api/v1/singles/import", json=body, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["imported"] == 1
