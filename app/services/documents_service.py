import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..core.config import settings
from ..core.database import Database
from ..core.errors import AccessDenied, NotFound
from ..core.security import is_safe_path, sanitize_filename
from ..models.document import CompletionDocument, CompletionDocumentPayload
from ..models.token import TokenRecord
from .inquiries_service import _inquiry_from_row

VIEW = "view"
DOWNLOAD = "download"

CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}

DOCUMENT_SELECT = """
SELECT d.*, to_jsonb(i) AS inquiry, i.client_id AS client_id
FROM completion_documents d
LEFT JOIN inquiries i ON i.id = d.inquiry_id
"""


@dataclass
class DocumentFile:
    """Where a document's bytes live and how to hand them out."""

    name: str
    disposition: str
    media_type: str = "application/octet-stream"
    path: Optional[Path] = None
    redirect_url: Optional[str] = None


def _document_from_row(row: dict) -> CompletionDocument:
    return CompletionDocument(
        id=row["id"],
        inquiryId=row["inquiry_id"],
        name=row.get("name") or "",
        fileUrl=row.get("file_url") or "",
        createdAt=row.get("created_at"),
        updatedAt=row.get("updated_at"),
        inquiry=_inquiry_from_row(row.get("inquiry")),
    )


def _to_db_row(payload: CompletionDocumentPayload) -> dict:
    return {
        "inquiry_id": payload.inquiryId,
        "name": payload.name.strip(),
        "file_url": payload.fileUrl.strip(),
    }


def content_type_for(file_name: str) -> str:
    return CONTENT_TYPES.get(Path(file_name).suffix.lower(), "application/octet-stream")


async def list_documents(db: Database) -> List[CompletionDocument]:
    rows = await db.fetch(DOCUMENT_SELECT + " ORDER BY d.created_at DESC")
    return [_document_from_row(r) for r in rows]


async def get_document(db: Database, document_id: str) -> CompletionDocument:
    row = await db.fetchrow(DOCUMENT_SELECT + " WHERE d.id = %s", [document_id])
    if not row:
        raise NotFound(f"Document {document_id} was not found")
    return _document_from_row(row)


async def create_document(db: Database, payload: CompletionDocumentPayload) -> CompletionDocument:
    row = _to_db_row(payload)
    row["id"] = str(uuid.uuid4())
    await db.execute(
        """
        INSERT INTO completion_documents (id, inquiry_id, name, file_url)
        VALUES (%(id)s, %(inquiry_id)s, %(name)s, %(file_url)s)
        """,
        row,
    )
    return await get_document(db, row["id"])


async def update_document(db: Database, document_id: str, payload: CompletionDocumentPayload) -> CompletionDocument:
    row = _to_db_row(payload)
    row["id"] = document_id
    updated = await db.execute(
        """
        UPDATE completion_documents SET
          inquiry_id = %(inquiry_id)s,
          name = %(name)s,
          file_url = %(file_url)s,
          updated_at = now()
        WHERE id = %(id)s
        """,
        row,
    )
    if not updated:
        raise NotFound(f"Document {document_id} was not found")
    return await get_document(db, document_id)


async def delete_document(db: Database, document_id: str):
    deleted = await db.execute("DELETE FROM completion_documents WHERE id = %s", [document_id])
    if not deleted:
        raise NotFound(f"Document {document_id} was not found")


async def list_documents_for_grant(db: Database, grant: TokenRecord) -> List[CompletionDocument]:
    """
    Documents visible through a share token: its inquiry, or every inquiry of its client.

    Both branches filter on the grant's client, matching get_document_for_grant.
    """
    if grant.inquiryId:
        rows = await db.fetch(
            DOCUMENT_SELECT + " WHERE d.inquiry_id = %s AND i.client_id = %s ORDER BY d.created_at DESC",
            [grant.inquiryId, grant.clientId],
        )
    else:
        rows = await db.fetch(
            DOCUMENT_SELECT + " WHERE i.client_id = %s ORDER BY d.created_at DESC",
            [grant.clientId],
        )
    return [_document_from_row(r) for r in rows]


async def get_document_for_grant(db: Database, grant: TokenRecord, document_id: str) -> CompletionDocument:
    row = await db.fetchrow(DOCUMENT_SELECT + " WHERE d.id = %s", [document_id])
    if not row or row.get("client_id") != grant.clientId:
        raise NotFound(f"Document {document_id} was not found")
    if grant.inquiryId and row["inquiry_id"] != grant.inquiryId:
        raise NotFound(f"Document {document_id} was not found")
    return _document_from_row(row)


def check_intent(grant: TokenRecord, intent: str):
    """View is allowed for every valid grant; download needs allowDownload."""
    if intent == DOWNLOAD and not grant.allowDownload:
        raise AccessDenied("Download is not permitted for this token")


def locate_file(document: CompletionDocument, intent: str = VIEW, uploads_dir: Optional[str] = None) -> DocumentFile:
    """Resolve a document's file URL to a redirect or a file under the uploads directory."""
    disposition = "attachment" if intent == DOWNLOAD else "inline"
    file_url = document.fileUrl
    if not file_url:
        raise NotFound("File not found")

    if file_url.startswith(("http://", "https://")):
        return DocumentFile(name=document.name, disposition=disposition, redirect_url=file_url)

    base_dir = Path(uploads_dir or settings.uploads_dir)
    relative = file_url.lstrip("/")
    candidate = base_dir / relative
    if not is_safe_path(base_dir, candidate) or not candidate.is_file():
        raise NotFound("File not found")

    file_name = candidate.name
    return DocumentFile(
        name=sanitize_filename(file_name),
        disposition=disposition,
        media_type=content_type_for(file_name),
        path=candidate,
    )
