from typing import Optional

from pydantic import BaseModel


PLACEHOLDER_NAME = "Unknown user"


class ParticipantProfile(BaseModel):

    user_id: str
    name: str = PLACEHOLDER_NAME
    image_url: Optional[str] = None
