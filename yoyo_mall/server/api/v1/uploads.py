"""
Upload Endpoints.

Image and avatar uploads to object storage, plus object deletion.
"""

import asyncio
import uuid
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from yoyo_mall.core.database.repositories.users import UserRepository
from yoyo_mall.core.exceptions import MallError, ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.common import DataResponse
from yoyo_mall.core.models.io.uploads import (
    AvatarResponse,
    DeleteRequest,
    DeleteResponse,
    StoredObject,
    UploadedFile,
    UploadError,
    UploadResponse,
)
from yoyo_mall.server.core.config import settings
from yoyo_mall.server.services.deps import CurrentUser, SessionDep
from yoyo_mall.server.services.imaging import avatar_image, create_thumbnail, optimize_image
from yoyo_mall.server.services.storage import UPLOAD_FOLDERS, StorageService, folder_for, get_storage

logger = get_logger(__name__)

router = APIRouter()

StorageDep = Annotated[StorageService, Depends(get_storage)]

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif")
MB = 1024 * 1024


async def _store_image(
    storage: StorageService, upload: UploadFile, folder: str, optimize: bool, thumbnail: bool
) -> UploadedFile:
    content_type = (upload.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailedError(f"Unsupported file type: {content_type or 'unknown'}", code="INVALID_FILE_TYPE")
    data = await upload.read()
    max_bytes = settings.storage.max_image_mb * MB
    if len(data) > max_bytes:
        raise ValidationFailedError(
            f"File exceeds {settings.storage.max_image_mb}MB", code="FILE_TOO_LARGE", details={"size": len(data)}
        )

    filename = upload.filename
    if optimize:
        data, content_type = await asyncio.to_thread(optimize_image, data)
        filename = "image.jpg"
    stored = await storage.upload(data, storage.generate_key(filename, folder), content_type)

    thumb = None
    if thumbnail:
        thumb_data, thumb_type = await asyncio.to_thread(create_thumbnail, data)
        thumb = StoredObject.model_validate(
            await storage.upload(thumb_data, storage.generate_key("thumb.jpg", f"{folder}/thumbnails"), thumb_type)
        )
    return UploadedFile(**stored, original_name=upload.filename, thumbnail=thumb)


@router.post(
    "/image",
    response_model=UploadResponse,
    response_model_exclude_none=True,
    summary="Upload Images",
    description="Upload one or more images. Files are processed independently; failures are reported per file.",
    responses={400: {"description": "No file could be uploaded"}},
)
async def upload_images(
    user: CurrentUser,
    storage: StorageDep,
    files: List[UploadFile] = File(...),
    upload_type: Optional[str] = Form(None, alias="type"),
    optimize: bool = Form(True),
    thumbnail: bool = Form(False),
) -> UploadResponse:
    folder = folder_for(upload_type)
    uploaded: List[UploadedFile] = []
    errors: List[UploadError] = []
    for upload in files:
        try:
            uploaded.append(await _store_image(storage, upload, folder, optimize, thumbnail))
        except MallError as e:
            logger.warning(f"Upload of {upload.filename} by {user.id} failed: {e.code}")
            errors.append(UploadError(file=upload.filename, error=e.message, code=e.code))

    if not uploaded:
        raise ValidationFailedError(
            "No files were uploaded",
            code="UPLOAD_FAILED",
            details={"errors": [error.model_dump(by_alias=True) for error in errors]},
        )
    return UploadResponse(
        data=uploaded,
        errors=errors or None,
        message=f"Uploaded {len(uploaded)} of {len(files)} files",
    )


@router.get(
    "/image",
    response_model=DataResponse,
    summary="Upload Constraints",
    description="Accepted image types, size limits and upload folders.",
)
async def upload_info() -> DataResponse:
    return DataResponse(
        data={
            "allowedTypes": list(ALLOWED_IMAGE_TYPES),
            "maxFileSize": settings.storage.max_image_mb * MB,
            "maxAvatarSize": settings.storage.max_avatar_mb * MB,
            "uploadTypes": list(UPLOAD_FOLDERS),
            "optimize": {"maxWidth": 1920, "maxHeight": 1080, "quality": 85},
            "thumbnail": {"width": 300, "height": 300},
        }
    )


@router.post(
    "/avatar",
    response_model=AvatarResponse,
    summary="Upload Avatar",
    description="Replace the signed-in user's avatar with a 400x400 WebP rendition of the uploaded image.",
    responses={400: {"description": "Not an image or too large"}},
)
async def upload_avatar(
    user: CurrentUser, session: SessionDep, storage: StorageDep, file: UploadFile = File(...)
) -> AvatarResponse:
    content_type = (file.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise ValidationFailedError("Avatar must be an image", code="INVALID_FILE_TYPE")
    data = await file.read()
    if len(data) > settings.storage.max_avatar_mb * MB:
        raise ValidationFailedError(f"Avatar exceeds {settings.storage.max_avatar_mb}MB", code="FILE_TOO_LARGE")

    processed, processed_type = await asyncio.to_thread(avatar_image, data)
    key = storage.named_key(f"avatar_{user.id}_{uuid.uuid4()}.webp", UPLOAD_FOLDERS["avatar"])
    stored = await storage.upload(processed, key, processed_type)

    previous_key = storage.key_from_url(user.avatar)
    user.avatar = stored["url"]
    await UserRepository(session).update(user)
    if previous_key and previous_key != key:
        if not await storage.delete(previous_key):
            logger.warning(f"Could not delete previous avatar {previous_key}")
    return AvatarResponse(data=StoredObject.model_validate(stored), message="Avatar updated")


async def _delete(payload: DeleteRequest, user, storage: StorageService) -> DeleteResponse:
    if payload.keys:
        results = await storage.delete_many(payload.keys)
    elif payload.key:
        results = {payload.key: await storage.delete(payload.key)}
    else:
        raise ValidationFailedError("Provide key or keys", code="MISSING_KEY")
    deleted = sum(1 for ok in results.values() if ok)
    logger.info(f"User {user.id} deleted {deleted} of {len(results)} objects")
    return DeleteResponse(results=results, message=f"Deleted {deleted} of {len(results)} files")


@router.delete(
    "/delete",
    response_model=DeleteResponse,
    summary="Delete Files",
    description="Delete one object (`key`) or several (`keys`).",
    responses={400: {"description": "Neither key nor keys given"}},
)
async def delete_files(payload: DeleteRequest, user: CurrentUser, storage: StorageDep) -> DeleteResponse:
    return await _delete(payload, user, storage)


@router.post(
    "/delete",
    response_model=DeleteResponse,
    summary="Delete Files (POST)",
    description="Same as `DELETE /upload/delete` for clients that cannot send a DELETE body.",
    responses={400: {"description": "Neither key nor keys given"}},
)
async def delete_files_post(payload: DeleteRequest, user: CurrentUser, storage: StorageDep) -> DeleteResponse:
    return await _delete(payload, user, storage)
