"""
Upload I/O models.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import Field

from .common import ApiModel


class StoredObject(ApiModel):
    key: str
    url: str
    size: int
    content_type: str


class UploadedFile(StoredObject):
    original_name: Optional[str] = None
    thumbnail: Optional[StoredObject] = None


class UploadError(ApiModel):
    file: Optional[str] = None
    error: str
    code: str


class UploadResponse(ApiModel):
    success: bool = True
    data: List[UploadedFile]
    errors: Optional[List[UploadError]] = None
    message: str


class AvatarResponse(ApiModel):
    success: bool = True
    data: StoredObject
    message: str


class DeleteRequest(ApiModel):
    key: Optional[str] = Field(default=None, min_length=1)
    keys: Optional[List[str]] = None


class DeleteResponse(ApiModel):
    success: bool = True
    results: Dict[str, bool]
    message: str
