from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, RedirectResponse

from ..core.auth import get_current_user
from ..core.database import Database, get_db
from ..models.document import CompletionDocument, CompletionDocumentPayload
from ..services.documents_service import (
    VIEW,
    DocumentFile,
    create_document,
    delete_document,
    get_document,
    list_documents,
    locate_file,
    update_document,
)

router = APIRouter(dependencies=[Depends(get_current_user)])


def file_response(located: DocumentFile):
    if located.redirect_url:
        return RedirectResponse(located.redirect_url, status_code=302)
    return FileResponse(
        located.path,
        media_type=located.media_type,
        filename=located.name,
        content_disposition_type=located.disposition,
    )


@router.get("/completion-docs", response_model=List[CompletionDocument])
async def get_documents(db: Database = Depends(get_db)):
    return await list_documents(db)


@router.post("/completion-docs", response_model=CompletionDocument)
async def add_document(payload: CompletionDocumentPayload, db: Database = Depends(get_db)):
    return await create_document(db, payload)


@router.put("/completion-docs/{document_id}", response_model=CompletionDocument)
async def edit_document(document_id: str, payload: CompletionDocumentPayload, db: Database = Depends(get_db)):
    return await update_document(db, document_id, payload)


@router.delete("/completion-docs/{document_id}")
async def remove_document(document_id: str, db: Database = Depends(get_db)):
    await delete_document(db, document_id)
    return {"success": True}


@router.get("/completion-docs/{document_id}/file")
async def read_document_file(document_id: str, db: Database = Depends(get_db)):
    document = await get_document(db, document_id)
    return file_response(locate_file(document, VIEW))
