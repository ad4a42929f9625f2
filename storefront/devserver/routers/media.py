import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile, status

from storefront.devserver.deps import get_current_user, get_store
from storefront.devserver.store import MediaRecord, MemoryStore, UserRecord
from storefront.schemas.media import Media
from storefront.services.files.types import LocalFile
from storefront.services.files.validator import PRODUCT_IMAGE, validate_file

router = APIRouter(prefix="/media", tags=["media"])
logger = logging.getLogger(__name__)


def to_media(record: MediaRecord) -> Media:
    return Media(
        id=record.id,
        url=record.url,
        original_filename=record.original_filename,
        size=record.size,
        content_type=record.content_type,
        user_id=record.user_id,
        product_id=record.product_id,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@router.post("/images", response_model=Media, status_code=status.HTTP_201_CREATED)
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    store: MemoryStore = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user),
) -> Media:
    try:
        data = await file.read()
    finally:
        await file.close()
    upload = LocalFile(
        name=file.filename or "upload",
        content_type=file.content_type or "application/octet-stream",
        data=data,
    )
    result = validate_file(upload, PRODUCT_IMAGE)
    if not result.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.errors[0])

    record = MediaRecord(
        original_filename=upload.name,
        content_type=upload.content_type,
        data=data,
        user_id=current_user.id,
    )
    record.url = str(request.url_for("serve_image", media_id=record.id))
    store.media[record.id] = record
    logger.info("media_uploaded", extra={"media_id": record.id, "size": record.size})
    return to_media(record)


@router.get("/images", response_model=list[Media])
def list_images(
    store: MemoryStore = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user),
) -> list[Media]:
    return [to_media(m) for m in store.media.values() if m.user_id == current_user.id]


@router.get("/images/{media_id}", name="serve_image")
def serve_image(media_id: str, store: MemoryStore = Depends(get_store)) -> Response:
    record = store.media.get(media_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    return Response(content=record.data, media_type=record.content_type)


@router.delete("/images/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(
    media_id: str,
    store: MemoryStore = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user),
) -> None:
    record = store.media.get(media_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    if record.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not own this media")
    del store.media[media_id]
