from fastapi import APIRouter, Depends

from ..core.database import Database, get_db
from ..models.token import SharedPack
from ..services.documents_service import (
    DOWNLOAD,
    VIEW,
    check_intent,
    get_document_for_grant,
    list_documents_for_grant,
    locate_file,
)
from ..services.tokens_service import resolve_token
from .documents import file_response

# Public routes: the share token is the only credential.
router = APIRouter()


@router.get("/share/{token}", response_model=SharedPack)
async def open_shared_pack(token: str, db: Database = Depends(get_db)):
    grant = await resolve_token(db, token)
    documents = await list_documents_for_grant(db, grant)
    return {
        "client": grant.client,
        "inquiry": grant.inquiry,
        "allowDownload": grant.allowDownload,
        "expiresAt": grant.expiresAt,
        "documents": documents,
    }


@router.get("/share/{token}/documents/{document_id}")
async def read_shared_document(
    token: str,
    document_id: str,
    download: bool = False,
    db: Database = Depends(get_db),
):
    grant = await resolve_token(db, token)
    intent = DOWNLOAD if download else VIEW
    check_intent(grant, intent)
    document = await get_document_for_grant(db, grant, document_id)
    return file_response(locate_file(document, intent))
