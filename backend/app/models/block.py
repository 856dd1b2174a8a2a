from datetime import datetime
from typing import TypedDict

from bson import ObjectId


class BlockDocument(TypedDict, total=False):
    _id: ObjectId
    blocker_id: str
    blocked_id: str
    created_at: datetime
