"""Cover image upload route."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from voyager.api import deps
from voyager.db.models import User
from voyager.schemas.media import UploadedImage
from voyager.services.media import CloudinaryUploader

router = APIRouter(prefix="/media", tags=["media"])


@router.post("/upload", response_model=UploadedImage)
async def upload_image(
    file: UploadFile | None = File(None),
    _: User = Depends(deps.get_current_user),
    uploader: CloudinaryUploader = Depends(deps.get_uploader),
) -> UploadedImage:
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    content = await file.read()
    return await uploader.upload(file.filename or "upload", content, file.content_type)
