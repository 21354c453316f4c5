import uuid
from typing import List, Optional

from ..core.database import Database
from ..core.errors import NotFound
from ..models.inquiry import Inquiry, InquiryPayload
from .clients_service import _client_from_row

INQUIRY_SELECT = """
SELECT i.*, to_jsonb(c) AS client
FROM inquiries i
LEFT JOIN clients c ON c.id = i.client_id
"""


def _inquiry_from_row(row: Optional[dict]) -> Optional[Inquiry]:
    if not row:
        return None
    return Inquiry(
        id=row["id"],
        clientId=row["client_id"],
        title=row.get("title") or "",
        notes=row.get("notes"),
        siteAddress=row.get("site_address"),
        status=row.get("status") or "NEW",
        createdAt=row.get("created_at"),
        updatedAt=row.get("updated_at"),
        client=_client_from_row(row.get("client")),
    )


def _to_db_row(payload: InquiryPayload) -> dict:
    return {
        "client_id": payload.clientId,
        "title": payload.title.strip(),
        "notes": payload.notes,
        "site_address": payload.siteAddress,
        "status": payload.status,
    }


async def list_inquiries(db: Database) -> List[Inquiry]:
    rows = await db.fetch(INQUIRY_SELECT + " ORDER BY i.created_at DESC")
    return [_inquiry_from_row(r) for r in rows]


async def create_inquiry(db: Database, payload: InquiryPayload) -> Inquiry:
    row = _to_db_row(payload)
    row["id"] = str(uuid.uuid4())
    saved = await db.fetchrow(
        """
        WITH saved AS (
          INSERT INTO inquiries (id, client_id, title, notes, site_address, status)
          VALUES (%(id)s, %(client_id)s, %(title)s, %(notes)s, %(site_address)s, %(status)s)
          RETURNING *
        )
        SELECT saved.*, to_jsonb(c) AS client
        FROM saved
        LEFT JOIN clients c ON c.id = saved.client_id
        """,
        row,
    )
    return _inquiry_from_row(saved)


async def update_inquiry(db: Database, inquiry_id: str, payload: InquiryPayload) -> Inquiry:
    row = _to_db_row(payload)
    row["id"] = inquiry_id
    saved = await db.fetchrow(
        """
        WITH saved AS (
          UPDATE inquiries SET
            client_id = %(client_id)s,
            title = %(title)s,
            notes = %(notes)s,
            site_address = %(site_address)s,
            status = %(status)s,
            updated_at = now()
          WHERE id = %(id)s
          RETURNING *
        )
        SELECT saved.*, to_jsonb(c) AS client
        FROM saved
        LEFT JOIN clients c ON c.id = saved.client_id
        """,
        row,
    )
    if not saved:
        raise NotFound(f"Inquiry {inquiry_id} was not found")
    return _inquiry_from_row(saved)


async def delete_inquiry(db: Database, inquiry_id: str):
    deleted = await db.execute("DELETE FROM inquiries WHERE id = %s", [inquiry_id])
    if not deleted:
        raise NotFound(f"Inquiry {inquiry_id} was not found")
