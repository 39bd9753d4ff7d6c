from typing import Optional

from pydantic import BaseModel, Field


class PlaylistCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default="", max_length=500)


class PlaylistUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
