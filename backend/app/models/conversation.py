from datetime import datetime
from typing import List, TypedDict

from bson import ObjectId


class ConversationDocument(TypedDict, total=False):
    _id: ObjectId
    # always stored in sorted order
    participants: List[str]
    # "<lo>:<hi>", unique per unordered pair
    pair_key: str
    created_at: datetime
    last_message_at: datetime
