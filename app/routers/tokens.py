from typing import List

from fastapi import APIRouter, Depends

from ..core.auth import get_current_user
from ..core.database import Database, get_db
from ..models.token import TokenPayload, TokenRecord
from ..services.tokens_service import create_token, list_tokens, revoke_token, update_token

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/tokens", response_model=List[TokenRecord])
async def get_tokens(db: Database = Depends(get_db)):
    return await list_tokens(db)


@router.post("/tokens", response_model=TokenRecord)
async def issue_token(payload: TokenPayload, db: Database = Depends(get_db)):
    return await create_token(db, payload)


@router.put("/tokens/{token_id}", response_model=TokenRecord)
async def edit_token(token_id: str, payload: TokenPayload, db: Database = Depends(get_db)):
    return await update_token(db, token_id, payload)


@router.delete("/tokens/{token_id}")
async def remove_token(token_id: str, db: Database = Depends(get_db)):
    await revoke_token(db, token_id)
    return {"success": True}
