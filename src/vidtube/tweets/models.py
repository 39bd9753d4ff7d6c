from typing import Optional

from pydantic import BaseModel, Field


class TweetContent(BaseModel):
    """Body for creating or editing a tweet; emptiness is checked by the write model."""
    content: Optional[str] = Field(default=None, max_length=1000)
