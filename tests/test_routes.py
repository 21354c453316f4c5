from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from app.core.auth import get_current_user
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import AppError
from app.main import app
from app.services import quotations_service as qs
from conftest import document_row, token_row


def _mock_db(**methods):
    db = MagicMock()
    for name, mock in methods.items():
        setattr(db, name, mock)
    return db


def test_health():
    assert TestClient(app).get("/health").json() == {"status": "ok"}


def test_operator_routes_require_bearer_token():
    app.dependency_overrides[get_db] = lambda: _mock_db()
    try:
        response = TestClient(app).get("/api/tokens")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 401


def test_delete_quotation_returns_success(api, fake_store):
    fake_store.add_quotation("q-1", versions=2, items_per_version=2)
    api.store = fake_store

    response = api.delete("/api/quotations/q-1")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert fake_store.row_count() == 0


def test_delete_unknown_quotation_is_404(api, fake_store):
    api.store = fake_store

    response = api.delete("/api/quotations/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Quotation nope was not found"}


def test_delete_quotation_store_failure_is_503_and_keeps_rows(api, fake_store):
    fake_store.add_quotation("q-1", versions=1, items_per_version=3)
    fake_store.fail_on.add(qs.DELETE_VERSIONS)
    api.store = fake_store

    response = api.delete("/api/quotations/q-1")

    assert response.status_code == 503
    assert response.json() == {"error": "Database unavailable"}
    assert fake_store.row_count() == 5


def test_create_token_ignores_client_supplied_token(api):
    db = _mock_db(fetchrow=AsyncMock(return_value=token_row()))
    api.store = db

    response = api.post(
        "/api/tokens",
        json={"clientId": "client-1", "inquiryId": "inq-1", "allowDownload": False, "token": "FFFFFFFF"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token"] == "AB12CD34"
    assert body["client"]["name"] == "Sunrise Farms"
    assert body["inquiry"]["title"] == "Rooftop 50kW"
    params = db.fetchrow.await_args.args[1]
    assert params["token"] != "FFFFFFFF"
    assert params["allow_download"] is False


def test_create_token_requires_client(api):
    api.store = _mock_db(fetchrow=AsyncMock())

    response = api.post("/api/tokens", json={"allowDownload": True})

    assert response.status_code == 422


def test_update_and_revoke_token(api):
    db = _mock_db(fetchrow=AsyncMock(return_value=token_row(allow_download=False)), execute=AsyncMock(return_value=1))
    api.store = db

    updated = api.put("/api/tokens/tok-1", json={"clientId": "client-1", "allowDownload": False, "expiresAt": None})
    revoked = api.delete("/api/tokens/tok-1")

    assert updated.status_code == 200
    assert updated.json()["allowDownload"] is False
    assert revoked.json() == {"success": True}


def test_revoke_unknown_token_is_404(api):
    api.store = _mock_db(execute=AsyncMock(return_value=0))

    response = api.delete("/api/tokens/missing")

    assert response.status_code == 404


def test_share_with_expired_token_is_rejected(api):
    expired = token_row(expires_at=datetime.now(timezone.utc) - timedelta(days=1))
    api.store = _mock_db(fetchrow=AsyncMock(return_value=expired), fetch=AsyncMock())

    response = api.get("/api/share/ab12cd34")

    assert response.status_code == 404
    assert response.json() == {"error": "Invalid or expired token"}
    api.store.fetch.assert_not_awaited()


def test_share_lists_documents_for_valid_token(api):
    api.store = _mock_db(
        fetchrow=AsyncMock(return_value=token_row(allow_download=False)),
        fetch=AsyncMock(return_value=[document_row()]),
    )

    response = api.get("/api/share/AB12CD34")

    assert response.status_code == 200
    body = response.json()
    assert body["allowDownload"] is False
    assert body["client"]["name"] == "Sunrise Farms"
    assert [d["name"] for d in body["documents"]] == ["Commissioning report"]


def test_view_only_token_cannot_download(api):
    api.store = _mock_db(fetchrow=AsyncMock(return_value=token_row(allow_download=False)))

    response = api.get("/api/share/AB12CD34/documents/doc-1", params={"download": "true"})

    assert response.status_code == 403
    assert response.json() == {"error": "Download is not permitted for this token"}


def test_view_only_token_can_view_inline(api, tmp_path, monkeypatch):
    target = tmp_path / "uploads" / "documents" / "report.pdf"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"%PDF-1.7 test")
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path))
    api.store = _mock_db(fetchrow=AsyncMock(side_effect=[token_row(allow_download=False), document_row()]))

    response = api.get("/api/share/AB12CD34/documents/doc-1")

    assert response.status_code == 200
    assert response.content == b"%PDF-1.7 test"
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"].startswith("inline")


def test_download_token_gets_attachment(api, tmp_path, monkeypatch):
    target = tmp_path / "uploads" / "documents" / "report.pdf"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"%PDF-1.7 test")
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path))
    api.store = _mock_db(fetchrow=AsyncMock(side_effect=[token_row(), document_row()]))

    response = api.get("/api/share/AB12CD34/documents/doc-1", params={"download": "true"})

    assert response.status_code == 200
    assert response.headers["content-disposition"].startswith("attachment")


def test_quotation_version_requires_label(api):
    api.store = _mock_db()

    response = api.post("/api/quotations/q-1/versions", json={"items": []})

    assert response.status_code == 422


def test_unauthenticated_request_uses_error_body():
    app.dependency_overrides[get_db] = lambda: _mock_db()
    try:
        response = TestClient(app).get("/api/tokens")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_request_validation_uses_error_body(api):
    api.store = _mock_db(fetchrow=AsyncMock())

    response = api.post("/api/tokens", json={"allowDownload": True})

    assert response.status_code == 422
    assert "clientId" in response.json()["error"]
    assert "detail" not in response.json()


def test_unexpected_failure_is_500_with_error_body(operator):
    app.dependency_overrides[get_db] = lambda: _mock_db(fetch=AsyncMock(side_effect=RuntimeError("boom")))
    app.dependency_overrides[get_current_user] = lambda: operator
    try:
        response = TestClient(app, raise_server_exceptions=False).get("/api/tokens")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 500
    assert response.json() == {"error": "Internal error"}


def test_unmapped_database_error_is_500_with_error_body(api):
    api.store = _mock_db(fetch=AsyncMock(side_effect=AppError("Database error")))

    response = api.get("/api/tokens")

    assert response.status_code == 500
    assert response.json() == {"error": "Database error"}


def test_token_for_inquiry_of_another_client_is_rejected(api):
    db = _mock_db(fetchrow=AsyncMock(return_value={"client_id": "client-B"}))
    api.store = db

    response = api.post("/api/tokens", json={"clientId": "client-A", "inquiryId": "inq-B"})

    assert response.status_code == 422
    assert response.json() == {"error": "Inquiry inq-B does not belong to client client-A"}
    db.fetchrow.assert_awaited_once()
