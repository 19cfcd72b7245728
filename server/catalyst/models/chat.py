from typing import Literal

from pydantic import BaseModel, Field

from catalyst.models.base import MAX_TEXT_CHARS


MessageRole = Literal["user", "assistant", "system"]


class ChatMessage(BaseModel):
    role: MessageRole
    content: str = Field(max_length=MAX_TEXT_CHARS)
