"""Supabase Storage access for the media library."""

from typing import Any

from supabase import Client

from content_hub.errors import StoreError


class MediaStorage:
    """Upload, resolve and list objects in Supabase Storage buckets."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """
        Upload bytes under a bucket path, replacing any existing object.

        Args:
            bucket: Storage bucket name
            path: Object path inside the bucket
            data: File contents
            content_type: MIME type stored with the object

        Returns:
            The storage path of the object
        """
        try:
            self.supabase.storage.from_(bucket).upload(
                path=path,
                file=data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
        except Exception as e:
            raise StoreError(f"Upload to {bucket}/{path} failed: {e!s}") from e
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return self.supabase.storage.from_(bucket).get_public_url(path)

    def list(self, bucket: str, prefix: str = "") -> list[dict[str, Any]]:
        """List the entries directly under a prefix."""
        try:
            return self.supabase.storage.from_(bucket).list(prefix) or []
        except Exception as e:
            raise StoreError(f"Listing {bucket}/{prefix} failed: {e!s}") from e
