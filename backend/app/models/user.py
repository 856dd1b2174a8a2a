from typing import Optional, TypedDict


class UserDocument(TypedDict, total=False):
    """Profile record owned by the profile service; read-only here."""

    _id: str
    full_name: Optional[str]
    avatar_url: Optional[str]
    avatar_key: Optional[str]
