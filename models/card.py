from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CardSource(str, Enum):
    SYSTEM = "system"
    USER = "user"


class CardContent(BaseModel):
    """A vocabulary item from either content pool, tagged with where it lives."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    prompt: str
    answer: str
    source: CardSource
    part_of_speech: Optional[str] = None
    deck_id: Optional[str] = None
