from typing import Optional

from pydantic import BaseModel


class Profile(BaseModel):
    id: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
