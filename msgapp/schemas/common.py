from pydantic import BaseModel
from typing import Optional


class ActionOkOut(BaseModel):
    ok: bool = True
    message: Optional[str] = None


class ErrorOut(BaseModel):
    ok: bool = False
    error: str
    message: str
