from pydantic import BaseModel
from typing import Optional


class AuthenticatedUser(BaseModel):
    """Operator signed in through Firebase; share-token visitors never get one."""

    uid: str
    email: Optional[str] = None
    role: str = "operator"
