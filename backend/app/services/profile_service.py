import logging
from typing import Optional

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from app.models.user import UserDocument
from app.repositories.user_repository import UserRepository
from app.schemas.user import PLACEHOLDER_NAME, ParticipantProfile


logger = logging.getLogger(__name__)


def _text(value) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def resolve_image_url(user: UserDocument, media_base_url: Optional[str] = None) -> Optional[str]:
    url = _text(user.get("avatar_url"))
    if url:
        return url
    key = _text(user.get("avatar_key"))
    if key and media_base_url:
        return f"{media_base_url.rstrip('/')}/{key}"
    return None


class ProfileService:
    """Decorates participant ids with display data from the profile store.

    Lookups never fail the caller; anything unresolvable becomes a placeholder.
    Profile documents are owned elsewhere, so non-string fields are ignored.
    """

    def __init__(self, user_repo: UserRepository, media_base_url: Optional[str] = None) -> None:
        self._user_repo = user_repo
        self._media_base_url = media_base_url

    async def profile_of(self, user_id: str) -> ParticipantProfile:
        try:
            user = await self._user_repo.get_user_by_id(user_id)
        except PyMongoError:
            logger.warning("Profile lookup failed for %s", user_id, exc_info=True)
            user = None
        if not user:
            return ParticipantProfile(user_id=user_id)
        try:
            return ParticipantProfile(
                user_id=user_id,
                name=_text(user.get("full_name")) or PLACEHOLDER_NAME,
                image_url=resolve_image_url(user, self._media_base_url),
            )
        except ValidationError:
            logger.warning("Malformed profile for %s", user_id, exc_info=True)
            return ParticipantProfile(user_id=user_id)
