"""Media library routes backed by Supabase Storage."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from content_hub.db.media_storage import MediaStorage
from content_hub.dependencies import get_media_storage
from content_hub.models.schemas import MediaUploadResponse

router = APIRouter(prefix="/media")


@router.post("/{bucket}", response_model=MediaUploadResponse)
async def upload_media(
    bucket: str,
    request: Request,
    path: str = Query(..., min_length=1, description="Object path inside the bucket"),
    media: MediaStorage = Depends(get_media_storage),
):
    """
    Upload the raw request body under a bucket path.

    Args:
        bucket: Storage bucket
        request: Incoming request; its body is the file content
        path: Object path inside the bucket
        media: Media storage (dependency injection)

    Returns:
        Stored path and its public URL
    """
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")
    content_type = request.headers.get("content-type") or "application/octet-stream"
    stored = media.upload(bucket, path, data, content_type)
    return MediaUploadResponse(bucket=bucket, path=stored, url=media.get_public_url(bucket, stored))


@router.get("/{bucket}")
async def list_media(
    bucket: str,
    prefix: str = "",
    media: MediaStorage = Depends(get_media_storage),
):
    """List objects under a prefix, each with its public URL."""
    items = []
    for entry in media.list(bucket, prefix):
        name = entry.get("name")
        if not name:
            continue
        path = f"{prefix.rstrip('/')}/{name}" if prefix else name
        items.append({**entry, "path": path, "url": media.get_public_url(bucket, path)})
    return {"items": items}
