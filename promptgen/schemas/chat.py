from pydantic import BaseModel, Field
from typing import Optional

class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)
    context: Optional[str] = Field(default=None, max_length=8000)
    stream: bool = Field(default=False)
    timeout: Optional[float] = Field(default=None, gt=0)

class ChatResponse(BaseModel):
    reply: str
    provider: Optional[str] = None

class ErrorResponse(BaseModel):
    error: str
    kind: Optional[str] = None
    message: str
    details: dict = Field(default_factory=dict)
