"""Media upload API routes."""
from typing import Optional

from fastapi import Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from app.auth import AuthenticatedUser, get_current_user
from app.config import settings
from app.database import get_db
from app.routing import Route
from app.schemas.media import MediaItemOut
from app.services import media_service
from app.storage import MediaStorage, get_media_storage


async def upload_media(
    file: Optional[UploadFile] = File(None),
    invite_id: Optional[str] = Form(None),
    caption: Optional[str] = Form(None),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Multipart upload: ``file``, ``invite_id`` and an optional ``caption``."""
    # one byte past the limit is enough to know the upload is too large
    content = await file.read(settings.MAX_UPLOAD_BYTES + 1) if file is not None else None
    return await media_service.upload_media(
        db=db,
        user=user,
        storage=storage,
        invite_id=invite_id,
        content=content,
        filename=file.filename if file is not None else "",
        content_type=file.content_type if file is not None else None,
        caption=caption,
    )


ROUTES = (
    Route("POST", "/", upload_media, MediaItemOut, status.HTTP_201_CREATED),
)
