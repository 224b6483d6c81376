from typing import Any, Optional
from pydantic import BaseModel, Field

class PushRequest(BaseModel):
    job: str
    data: Any = ""
    queue: Optional[str] = None

class PushRawRequest(BaseModel):
    payload: str
    queue: Optional[str] = None

class LaterRequest(BaseModel):
    delay: float = Field(ge=0)
    job: str
    data: Any = ""
    queue: Optional[str] = None
