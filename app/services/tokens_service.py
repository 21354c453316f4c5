import logging
import re
import secrets
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from ..core.config import settings
from ..core.database import Database
from ..core.errors import ConstraintViolation, DuplicateKey, InvalidToken, NotFound, ValidationError
from ..models.token import TokenPayload, TokenRecord
from .clients_service import _client_from_row
from .inquiries_service import _inquiry_from_row

log = logging.getLogger(__name__)

TOKEN_BYTES = 4
TOKEN_PATTERN = re.compile(r"^[0-9A-F]{8}$")

TOKEN_SELECT = """
SELECT t.*, to_jsonb(c) AS client, to_jsonb(i) AS inquiry
FROM token_access t
LEFT JOIN clients c ON c.id = t.client_id
LEFT JOIN inquiries i ON i.id = t.inquiry_id
"""

INSERT_TOKEN = """
WITH saved AS (
  INSERT INTO token_access (id, token, client_id, inquiry_id, allow_download, expires_at)
  VALUES (%(id)s, %(token)s, %(client_id)s, %(inquiry_id)s, %(allow_download)s, %(expires_at)s)
  RETURNING *
)
SELECT saved.*, to_jsonb(c) AS client, to_jsonb(i) AS inquiry
FROM saved
LEFT JOIN clients c ON c.id = saved.client_id
LEFT JOIN inquiries i ON i.id = saved.inquiry_id
"""

UPDATE_TOKEN = """
WITH saved AS (
  UPDATE token_access SET
    client_id = %(client_id)s,
    inquiry_id = %(inquiry_id)s,
    allow_download = %(allow_download)s,
    expires_at = %(expires_at)s
  WHERE id = %(id)s
  RETURNING *
)
SELECT saved.*, to_jsonb(c) AS client, to_jsonb(i) AS inquiry
FROM saved
LEFT JOIN clients c ON c.id = saved.client_id
LEFT JOIN inquiries i ON i.id = saved.inquiry_id
"""

SELECT_BY_TOKEN = TOKEN_SELECT + " WHERE t.token = %s"
DELETE_TOKEN = "DELETE FROM token_access WHERE id = %s"
SELECT_INQUIRY_CLIENT = "SELECT client_id FROM inquiries WHERE id = %s"


def generate_token() -> str:
    """Four random bytes as eight uppercase hex characters."""
    return secrets.token_bytes(TOKEN_BYTES).hex().upper()


def normalize_token(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _mask(token: str) -> str:
    return f"{token[:2]}******"


def _token_from_row(row: dict) -> TokenRecord:
    return TokenRecord(
        id=row["id"],
        token=row["token"],
        clientId=row["client_id"],
        inquiryId=row.get("inquiry_id"),
        allowDownload=bool(row.get("allow_download", True)),
        expiresAt=row.get("expires_at"),
        createdAt=row.get("created_at"),
        client=_client_from_row(row.get("client")),
        inquiry=_inquiry_from_row(row.get("inquiry")),
    )


def _to_db_row(payload: TokenPayload) -> dict:
    return {
        "client_id": payload.clientId,
        "inquiry_id": payload.inquiryId,
        "allow_download": True if payload.allowDownload is None else payload.allowDownload,
        "expires_at": _as_utc(payload.expiresAt),
    }


def is_token_active(record: TokenRecord, now: Optional[datetime] = None) -> bool:
    """A token is active until the moment it expires; no expiry means forever."""
    if record.expiresAt is None:
        return True
    return _as_utc(record.expiresAt) > _as_utc(now or _utcnow())


async def _check_scope(db: Database, payload: TokenPayload):
    """An inquiry-scoped token must point at an inquiry of the same client."""
    if not payload.inquiryId:
        return
    inquiry = await db.fetchrow(SELECT_INQUIRY_CLIENT, [payload.inquiryId])
    if not inquiry:
        raise ValidationError(f"Inquiry {payload.inquiryId} was not found")
    if inquiry["client_id"] != payload.clientId:
        raise ValidationError(f"Inquiry {payload.inquiryId} does not belong to client {payload.clientId}")


async def list_tokens(db: Database) -> List[TokenRecord]:
    rows = await db.fetch(TOKEN_SELECT + " ORDER BY t.created_at DESC")
    return [_token_from_row(r) for r in rows]


async def create_token(db: Database, payload: TokenPayload) -> TokenRecord:
    """
    Issue a new share token.

    The token column is unique; on a collision a fresh value is drawn, up to
    ``settings.token_generation_attempts`` times.
    """
    await _check_scope(db, payload)
    row = _to_db_row(payload)
    attempts = max(1, settings.token_generation_attempts)
    for attempt in range(1, attempts + 1):
        row["id"] = str(uuid.uuid4())
        row["token"] = generate_token()
        try:
            saved = await db.fetchrow(INSERT_TOKEN, row)
        except DuplicateKey:
            log.warning("Share token collision on attempt %d/%d", attempt, attempts)
            continue
        log.info("Issued share token %s for client %s", _mask(saved["token"]), payload.clientId)
        return _token_from_row(saved)

    raise ConstraintViolation("Failed to generate a unique share token")


async def update_token(db: Database, token_id: str, payload: TokenPayload) -> TokenRecord:
    await _check_scope(db, payload)
    row = _to_db_row(payload)
    row["id"] = token_id
    saved = await db.fetchrow(UPDATE_TOKEN, row)
    if not saved:
        raise NotFound(f"Token {token_id} was not found")
    return _token_from_row(saved)


async def revoke_token(db: Database, token_id: str):
    deleted = await db.execute(DELETE_TOKEN, [token_id])
    if not deleted:
        raise NotFound(f"Token {token_id} was not found")
    log.info("Revoked share token %s", token_id)


async def resolve_token(db: Database, presented: Optional[str], now: Optional[datetime] = None) -> TokenRecord:
    """
    Turn a presented token string into an active grant.

    Unknown, malformed and expired tokens all raise InvalidToken. Whether the
    grant permits downloads is left to the caller serving the documents.
    """
    token = normalize_token(presented)
    if not TOKEN_PATTERN.match(token):
        raise InvalidToken()

    row = await db.fetchrow(SELECT_BY_TOKEN, [token])
    if not row:
        raise InvalidToken()

    record = _token_from_row(row)
    if not is_token_active(record, now):
        log.info("Rejected expired share token %s", _mask(token))
        raise InvalidToken()
    return record
