"""
Integration tests for the HTTP API using a SQLite DB and a scripted
generation backend.
"""
import pytest

from diarybuddy.core.errors import GenerationUnavailableError
from diarybuddy.services.reconciliation import FALLBACK_MESSAGE
from diarybuddy.services.session import GREETING


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestEntries:
    def test_list_empty(self, client):
        r = client.get("/api/entries")
        assert r.status_code == 200
        assert r.json() == []

    def test_create_returns_id(self, client):
        r = client.post("/api/entries", json={
            "content": "Studied algorithms, learned merge sort.",
            "summary": "Studied algorithms",
            "learning": "Merge sort works by divide and conquer",
        })
        assert r.status_code == 201
        assert r.json()["id"] > 0

    def test_list_newest_first(self, client):
        for i in range(3):
            client.post("/api/entries", json={"content": f"day {i}", "summary": f"S{i}", "learning": f"L{i}"})
        body = client.get("/api/entries").json()
        assert [e["summary"] for e in body] == ["S2", "S1", "S0"]
        for field in ["id", "content", "summary", "learning", "created_at"]:
            assert field in body[0]

    def test_created_at_carries_utc_offset(self, client):
        client.post("/api/entries", json={"content": "c", "summary": "s", "learning": "l"})
        created_at = client.get("/api/entries").json()[0]["created_at"]
        assert created_at.endswith("+00:00")

    @pytest.mark.parametrize("payload", [
        {"content": "", "summary": "s", "learning": "l"},
        {"content": "   ", "summary": "s", "learning": "l"},
        {"content": "c", "summary": "", "learning": "l"},
        {"summary": "s", "learning": "l"},
        {"content": "c", "summary": "s"},
    ])
    def test_invalid_entry_rejected(self, client, payload):
        r = client.post("/api/entries", json=payload)
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"
        assert client.get("/api/entries").json() == []

    def test_no_update_or_delete(self, client):
        r = client.post("/api/entries", json={"content": "c", "summary": "s", "learning": "l"})
        entry_id = r.json()["id"]
        assert client.delete(f"/api/entries/{entry_id}").status_code in (404, 405)
        assert client.put(f"/api/entries/{entry_id}", json={}).status_code in (404, 405)


class TestPreferences:
    def test_list_empty(self, client):
        r = client.get("/api/preferences")
        assert r.status_code == 200
        assert r.json() == {}

    def test_save_and_read(self, client):
        r = client.post("/api/preferences", json={"key": "favorite_subject", "value": "math"})
        assert r.status_code == 200
        assert r.json() == {"success": True}
        assert client.get("/api/preferences").json() == {"favorite_subject": "math"}

    def test_last_write_wins(self, client):
        client.post("/api/preferences", json={"key": "favorite_subject", "value": "math"})
        client.post("/api/preferences", json={"key": "favorite_subject", "value": "history"})
        assert client.get("/api/preferences").json() == {"favorite_subject": "history"}

    @pytest.mark.parametrize("payload", [{"key": "", "value": "v"}, {"key": "k", "value": " "}, {"key": "k"}])
    def test_invalid_preference_rejected(self, client, payload):
        r = client.post("/api/preferences", json=payload)
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"


class TestChat:
    def test_turns_start_with_greeting(self, client):
        r = client.get("/api/chat/turns")
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == 1
        assert body["items"][0] == {"role": "assistant", "content": GREETING, "attached_record": None}

    def test_entry_scenario(self, client, generator):
        generator.queue({
            "summary": "Studied algorithms",
            "learning": "Merge sort works by divide and conquer",
            "chatResponse": "Nice work today!",
        })

        r = client.post("/api/chat", json={"message": "Studied algorithms, learned merge sort."})

        assert r.status_code == 200
        body = r.json()
        assert body["user_turn"]["role"] == "user"
        assert body["turn"]["content"] == "Nice work today!"
        assert body["turn"]["attached_record"] == {
            "summary": "Studied algorithms",
            "learning": "Merge sort works by divide and conquer",
        }
        assert body["entry_write"]["status"] == "ok"
        assert body["preference_write"]["status"] == "skipped"

        entries = client.get("/api/entries").json()
        assert len(entries) == 1
        assert entries[0]["id"] == body["entry_id"]
        assert entries[0]["content"] == "Studied algorithms, learned merge sort."
        assert client.get("/api/preferences").json() == {}

    def test_preference_scenario(self, client, generator):
        generator.queue({
            "chatResponse": "Good to know!",
            "updatedPreferences": {"key": "favorite_subject", "value": "math"},
        })

        r = client.post("/api/chat", json={"message": "My favorite subject is math."})

        body = r.json()
        assert body["turn"]["content"] == "Good to know!"
        assert body["turn"]["attached_record"] is None
        assert body["entry_id"] is None
        assert body["preference_write"]["status"] == "ok"
        assert client.get("/api/preferences").json() == {"favorite_subject": "math"}
        assert client.get("/api/entries").json() == []

    def test_turns_ordered(self, client, generator):
        generator.queue({"chatResponse": "one"}, {"chatResponse": "two"})
        client.post("/api/chat", json={"message": "a"})
        client.post("/api/chat", json={"message": "b"})
        items = client.get("/api/chat/turns").json()["items"]
        assert [(t["role"], t["content"]) for t in items] == [
            ("assistant", GREETING),
            ("user", "a"),
            ("assistant", "one"),
            ("user", "b"),
            ("assistant", "two"),
        ]

    def test_generation_failure_returns_fallback(self, client, generator):
        generator.queue(GenerationUnavailableError(reason="down"))
        r = client.post("/api/chat", json={"message": "hello"})
        assert r.status_code == 200
        body = r.json()
        assert body["turn"]["content"] == FALLBACK_MESSAGE
        assert body["generation_error"] == "GENERATION_UNAVAILABLE"

    def test_blank_message_rejected(self, client, generator):
        r = client.post("/api/chat", json={"message": "   "})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"
        assert generator.calls == []

    def test_busy_session_returns_409(self, client, conversation):
        conversation._lock.acquire()
        try:
            r = client.post("/api/chat", json={"message": "hello"})
        finally:
            conversation._lock.release()
        assert r.status_code == 409
        assert r.json()["code"] == "SUBMISSION_IN_PROGRESS"

    def test_reload(self, client):
        client.post("/api/preferences", json={"key": "name", "value": "Ana"})
        client.post("/api/entries", json={"content": "c", "summary": "s", "learning": "l"})
        r = client.post("/api/chat/reload")
        assert r.status_code == 200
        assert r.json() == {"preferences": 1, "entries": 1}

    def test_reload_feeds_next_context(self, client, generator):
        client.post("/api/preferences", json={"key": "name", "value": "Ana"})
        client.post("/api/chat/reload")
        generator.queue({"chatResponse": "Hi Ana!"})
        client.post("/api/chat", json={"message": "hey"})
        assert generator.calls[0][1].preferences == "name: Ana"
