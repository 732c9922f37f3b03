from pydantic import BaseModel
from typing import Optional


class CreateSessionResponse(BaseModel):
    id: str
    homeownerUrl: str
    appraiserUrl: str

class SessionStatusResponse(BaseModel):
    id: str
    homeowner: bool
    appraiser: bool

class SnapRequest(BaseModel):
    roomId: Optional[str] = None
    imageBase64: Optional[str] = None

class SnapResponse(BaseModel):
    ok: bool
    url: str
    filename: str
