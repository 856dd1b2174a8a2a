from datetime import datetime
from typing import Optional, TypedDict

from bson import ObjectId


class MessageDocument(TypedDict, total=False):
    _id: ObjectId
    conversation_id: ObjectId
    sender_id: str
    content: str
    created_at: datetime
    # set once by the recipient, never cleared
    read_at: Optional[datetime]
