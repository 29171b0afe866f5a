from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class BadgeRead(BaseModel):
    badge_type: str
    level: str
    name: str
    attempt_id: Optional[str] = None
    awarded_at: datetime

    class Config:
        from_attributes = True
