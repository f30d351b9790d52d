"""Re-host profile pictures in Supabase Storage.

Instagram CDN links are signed and expire; copies in a public bucket do not.
"""

import httpx

from coachdir.logging import get_logger

DEFAULT_BUCKET = "profile-pictures"
CACHE_CONTROL_SECONDS = 31536000


class ImageStore:
    """
    Supabase Storage bucket accessed over its REST API with httpx.

    Example:
        async with ImageStore(url, service_key) as store:
            public_url = await store.rehost(profile.profile_picture, profile.username)
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str = DEFAULT_BUCKET,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds, follow_redirects=True)
        self._log = get_logger("image_store")

    async def __aenter__(self) -> "ImageStore":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    @property
    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def object_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{path}"

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    def is_rehosted(self, url: str | None) -> bool:
        """Whether a URL already points into this bucket."""
        if not url:
            return False
        return url.startswith(f"{self.base_url}/storage/v1/object/public/{self.bucket}/")

    async def rehost(self, image_url: str | None, username: str) -> str | None:
        """
        Download an image and upload it under ``<username>.<ext>``.

        Args:
            image_url: Source image, usually a signed CDN link
            username: Profile handle used as the object name

        Returns:
            Public URL of the stored copy, or None if anything failed
        """
        if not image_url or not image_url.startswith("http"):
            self._log.warning("invalid_image_url", username=username, url=image_url)
            return None

        try:
            response = await self._client.get(image_url)
        except httpx.HTTPError as e:
            self._log.error("image_download_failed", username=username, error=str(e))
            return None

        if not response.is_success:
            self._log.error("image_download_failed", username=username, status=response.status_code)
            return None

        content_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        extension = content_type.split("/")[-1] or "jpg"
        path = f"{username.lower()}.{extension}"

        try:
            upload = await self._client.post(
                self.object_url(path),
                content=response.content,
                headers={
                    **self._auth_headers,
                    "Content-Type": content_type,
                    "x-upsert": "true",
                    "cache-control": f"max-age={CACHE_CONTROL_SECONDS}",
                },
            )
        except httpx.HTTPError as e:
            self._log.error("image_upload_failed", username=username, error=str(e))
            return None

        if not upload.is_success:
            self._log.error(
                "image_upload_failed",
                username=username,
                status=upload.status_code,
                body=upload.text[:200],
            )
            return None

        self._log.info("image_rehosted", username=username, path=path)
        return self.public_url(path)

    async def delete(self, username: str, extension: str = "jpeg") -> bool:
        """Remove a stored picture. Returns False on failure."""
        path = f"{username.lower()}.{extension}"
        try:
            response = await self._client.delete(self.object_url(path), headers=self._auth_headers)
        except httpx.HTTPError as e:
            self._log.error("image_delete_failed", username=username, error=str(e))
            return False

        if not response.is_success:
            self._log.error("image_delete_failed", username=username, status=response.status_code)
            return False
        return True
