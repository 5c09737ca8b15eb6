from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    user_id: str
    email: Optional[str] = None
