"""Media uploads attached to invites."""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser
from app.config import settings
from app.errors import AppError
from app.models.media import MediaItem, MediaType
from app.services.invite_service import check_circle_access, get_invite_or_404
from app.storage import MediaStorage

logger = logging.getLogger(__name__)


def detect_media_type(content_type: Optional[str]) -> MediaType:
    if content_type and content_type.startswith("video/"):
        return MediaType.video
    return MediaType.image


async def upload_media(
    db: Session,
    user: AuthenticatedUser,
    storage: MediaStorage,
    invite_id: Optional[str],
    content: Optional[bytes],
    filename: str,
    content_type: Optional[str] = None,
    caption: Optional[str] = None,
) -> MediaItem:
    """Store the file, then record a MediaItem pointing at it.

    ``content`` may be read with a cap of ``MAX_UPLOAD_BYTES + 1``; anything
    longer than the limit is rejected. If the record cannot be committed the
    stored file is removed again.
    """
    if not invite_id:
        raise AppError.bad_request("Invite ID is required")
    if not content:
        raise AppError.bad_request("File is required")
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise AppError.bad_request("File too large")

    invite = get_invite_or_404(db, invite_id)
    check_circle_access(db, user, invite.circle_id)

    try:
        url = await storage.save(invite_id, user.user_id, content, filename)
    except OSError as exc:
        raise AppError.internal(exc)

    media = MediaItem(
        invite_id=invite_id,
        user_id=user.user_id,
        url=url,
        type=detect_media_type(content_type),
        caption=caption,
    )
    db.add(media)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        # no record means no file
        try:
            await storage.delete(url)
        except OSError:
            logger.exception("Could not remove orphaned upload %s", url)
        raise AppError.internal(exc)
    db.refresh(media)
    logger.info("User %s uploaded %s (%s) to invite %s", user.user_id, media.media_id, media.type.value, invite_id)
    return media
