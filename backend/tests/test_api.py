"""
API Tests

End-to-end checks through the FastAPI routers: upload, analysis, letter
generation, letter lifecycle and chat.
"""
import pytest

USER = {"X-User-Id": "user-1"}


def _upload(client, text, session_id=None, filename="report.txt", content_type="text/plain", headers=None):
    data = {"session_id": session_id} if session_id else {}
    return client.post(
        "/reports/upload",
        files={"file": (filename, text if isinstance(text, bytes) else text.encode("utf-8"), content_type)},
        data=data,
        headers=headers or {},
    )


@pytest.fixture
def analysed(client, sample_report_text):
    """Session id of an uploaded sample report owned by user-1"""
    response = _upload(client, sample_report_text, headers=USER)
    assert response.status_code == 200
    return response.json()["session_id"]


# =============================================================================
# HEALTH AND SESSIONS
# =============================================================================

class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_root(self, client):
        assert client.get("/").json()["name"] == "Dispute Engine"


class TestSessions:

    def test_create_session(self, client):
        response = client.post("/sessions", headers=USER)
        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == "user-1"
        assert body["chat_state"] == "no_dispute"
        assert not body["has_report"]

    def test_create_session_with_profile(self, client, session_store):
        response = client.post("/sessions", json={"profile": {"name": "Jane Roe", "city": "Austin"}})
        session = session_store.get(response.json()["session_id"])
        assert session.user_info.name == "Jane Roe"
        assert session.user_info.city == "Austin"

    def test_unknown_session_is_404(self, client):
        assert client.get("/sessions/missing").status_code == 404


# =============================================================================
# REPORTS
# =============================================================================

class TestReportUpload:

    def test_upload_analyses_report(self, client, sample_report_text):
        response = _upload(client, sample_report_text)
        assert response.status_code == 200
        body = response.json()

        assert body["bureaus"] == ["Experian"]
        assert len(body["accounts"]) == 4
        assert body["notices"] == []
        assert body["parse_warning"] is None
        assert body["disputes"][0]["account_name"] == "CHASE CARD"
        assert body["disputes"][0]["reason"] == "Late Payment"
        assert body["disputes"][0]["severity"] == "high"
        assert body["disputes"][0]["sample_dispute_language"]
        assert body["analysis_results"]["total_accounts"] == 4
        assert body["personal_info"]["name"] == "John Q Consumer"

    def test_upload_into_existing_session(self, client, sample_report_text, session_store):
        session_id = client.post("/sessions").json()["session_id"]
        response = _upload(client, sample_report_text, session_id=session_id)

        assert response.json()["session_id"] == session_id
        session = session_store.get(session_id)
        assert session.report is not None
        assert len(session.messages) == 1
        assert client.get(f"/reports/{session_id}").status_code == 200

    def test_unreadable_report_degrades(self, client):
        response = _upload(client, "garbage")
        assert response.status_code == 200
        body = response.json()

        assert body["accounts"] == []
        assert body["notices"][0].startswith("Credit Report Parsing Issue")
        assert [d["reason"] for d in body["disputes"]] == ["General Dispute"]

    def test_raw_text_fallback_adds_notice(self, client):
        text = "Summary page of a scanned report that lost its structure. " * 2 + "CAPITAL ONE Balance $250"
        body = _upload(client, text).json()

        assert body["disputes"][0]["account_name"] == "CAPITAL ONE"
        assert body["disputes"][0]["confidence"] == "degraded"
        assert any("scanning the report text" in notice for notice in body["notices"])

    def test_unsupported_type_is_415(self, client):
        response = _upload(client, b"hello", filename="report.docx", content_type="application/octet-stream")
        assert response.status_code == 415

    def test_executable_is_400(self, client):
        response = _upload(client, b"MZ\x90\x00", filename="report.txt")
        assert response.status_code == 400

    def test_busy_session_is_409(self, client, session_store, sample_report_text):
        session = session_store.create()
        session.processing = True
        response = _upload(client, sample_report_text, session_id=session.session_id)
        assert response.status_code == 409

    def test_report_before_upload_is_404(self, client):
        session_id = client.post("/sessions").json()["session_id"]
        assert client.get(f"/reports/{session_id}").status_code == 404


# =============================================================================
# LETTERS
# =============================================================================

class TestLetters:

    def test_generate_and_list(self, client, analysed):
        response = client.post("/letters/generate", json={"session_id": analysed}, headers=USER)
        assert response.status_code == 200
        letter = response.json()

        assert letter["saved"]
        assert letter["account_name"] == "CHASE CARD"
        assert letter["status"] == "ready"
        assert "Experian\nP.O. Box 4500\nAllen, TX 75013" in letter["content"]
        assert "John Q Consumer" in letter["content"]

        listed = client.get("/letters", headers=USER).json()
        assert [item["letter_id"] for item in listed] == [letter["letter_id"]]

    def test_generate_specific_dispute(self, client, analysed, session_store):
        dispute = session_store.get(analysed).disputes[-1]
        response = client.post(
            "/letters/generate",
            json={"session_id": analysed, "dispute_id": dispute.dispute_id},
        )
        assert response.json()["account_name"] == dispute.account_name

    def test_generate_unknown_dispute_is_404(self, client, analysed):
        response = client.post("/letters/generate", json={"session_id": analysed, "dispute_id": "nope"})
        assert response.status_code == 404

    def test_anonymous_letters_are_not_saved(self, client, sample_report_text):
        session_id = _upload(client, sample_report_text).json()["session_id"]
        letter = client.post("/letters/generate", json={"session_id": session_id}).json()
        assert letter["saved"] is False

    def test_listing_requires_user(self, client):
        assert client.get("/letters").status_code == 401

    def test_manual_letter(self, client):
        response = client.post(
            "/letters/manual",
            json={
                "bureau": "TransUnion",
                "account_name": "Discover",
                "account_number": "6011000011112222",
                "error_type": "Wrong balance",
                "explanation": "The balance was paid in full.",
                "user_info": {
                    "name": "Jane Roe", "address": "9 Elm St", "city": "Austin", "state": "TX", "zip_code": "78701",
                },
            },
            headers=USER,
        )
        assert response.status_code == 200
        letter = response.json()

        assert letter["bureau"] == "TransUnion"
        assert letter["status"] == "ready"
        assert letter["saved"]
        assert "TransUnion LLC" in letter["content"]
        assert "xx-xxxx-2222" in letter["content"]

    def test_batch_letters(self, client, analysed):
        response = client.post("/letters/batch", json={"session_id": analysed}, headers=USER)
        assert response.status_code == 200
        letters = response.json()

        assert len(letters) >= 3
        assert all(letter["saved"] for letter in letters)
        assert len(client.get("/letters", headers=USER).json()) == len(letters)

    def test_status_lifecycle(self, client, analysed):
        letter_id = client.post("/letters/generate", json={"session_id": analysed}, headers=USER).json()["letter_id"]

        sent = client.patch(f"/letters/{letter_id}/status", json={"status": "sent"}, headers=USER)
        assert sent.status_code == 200
        assert sent.json()["status"] == "sent"

        back = client.patch(f"/letters/{letter_id}/status", json={"status": "draft"}, headers=USER)
        assert back.status_code == 409

    def test_status_of_unknown_letter_is_404(self, client):
        response = client.patch("/letters/missing/status", json={"status": "ready"}, headers=USER)
        assert response.status_code == 404


# =============================================================================
# CHAT
# =============================================================================

class TestChat:

    def test_chat_generates_and_saves_letter(self, client, analysed):
        response = client.post(f"/chat/{analysed}/messages", json={"content": "Generate a letter"}, headers=USER)
        assert response.status_code == 200
        body = response.json()

        assert body["state"] == "letter_generated"
        assert body["flow"] == "automatic"
        letter_id = body["replies"][0]["letter_id"]
        assert [item["letter_id"] for item in client.get("/letters", headers=USER).json()] == [letter_id]

    def test_manual_chat_flow(self, client):
        session_id = client.post("/sessions").json()["session_id"]
        states = []
        for text in ["help me", "Equifax", "Discover", "Wrong balance", "It was paid off."]:
            states.append(client.post(f"/chat/{session_id}/messages", json={"content": text}).json()["state"])

        assert states == [
            "bureau_asked", "account_asked", "error_type_asked", "explanation_asked", "letter_generated",
        ]

    def test_transcript(self, client, analysed):
        client.post(f"/chat/{analysed}/messages", json={"content": "show me the issues"})
        messages = client.get(f"/chat/{analysed}/messages").json()["messages"]

        assert [m["sender"] for m in messages] == ["agent", "user", "agent"]
        assert len(messages[2]["discrepancies"]) > 0

    def test_chat_unknown_session_is_404(self, client):
        response = client.post("/chat/missing/messages", json={"content": "hi"})
        assert response.status_code == 404
