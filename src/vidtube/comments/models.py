from typing import Optional

from pydantic import BaseModel, Field


class CommentContent(BaseModel):
    content: Optional[str] = Field(default=None, max_length=1000)
