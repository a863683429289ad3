"""Storage clients - publish finished videos and manage their retention."""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import requests

from shorts_factory.core.config import Settings
from shorts_factory.utils.error_handler import PublishError

_FRACTION = re.compile(r"\.(\d+)")


class StorageClient:
    """Destination for finished videos. Subclasses talk to a real backend."""

    def upload(self, data: bytes, key: str, content_type: str = "video/mp4") -> str:
        """Store ``data`` under ``key`` and return a publicly resolvable URL."""
        raise NotImplementedError

    def list_objects(self, prefix: str) -> list[dict]:
        """List stored objects under ``prefix`` (each with name, created_at, size)."""
        raise NotImplementedError

    def remove(self, keys: list[str]) -> None:
        """Delete the given keys."""
        raise NotImplementedError


class SupabaseStorageClient(StorageClient):
    """Supabase Storage over its REST API."""

    def __init__(self, settings: Settings, logger: Any, timeout: float = 120.0):
        """
        Initialize Supabase storage client.

        Args:
            settings: Application settings
            logger: Logger instance
            timeout: Request timeout in seconds
        """
        self.settings = settings
        self.logger = logger
        self.timeout = timeout
        self.base_url = (settings.supabase_url or "").rstrip("/")
        self.service_key = settings.supabase_service_role_key
        self.bucket = settings.video_storage_bucket

    def _headers(self, content_type: Optional[str] = None) -> dict:
        if not self.base_url or not self.service_key:
            raise PublishError("Supabase storage not configured (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"

    def upload(self, data: bytes, key: str, content_type: str = "video/mp4") -> str:
        headers = self._headers(content_type)
        headers["x-upsert"] = "true"
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{key}"

        self.logger.info(f"Uploading {len(data) / 1024 / 1024:.2f} MB to {self.bucket}/{key}")
        try:
            response = requests.post(url, data=data, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise PublishError(f"Network error uploading {key}: {e}") from e

        if not response.ok:
            raise PublishError(f"Storage upload returned status {response.status_code}: {response.text[:500]}")

        return self.public_url(key)

    def list_objects(self, prefix: str) -> list[dict]:
        url = f"{self.base_url}/storage/v1/object/list/{self.bucket}"
        body = {
            "prefix": prefix,
            "limit": 1000,
            "offset": 0,
            "sortBy": {"column": "created_at", "order": "asc"},
        }
        try:
            response = requests.post(url, json=body, headers=self._headers("application/json"), timeout=30)
        except requests.exceptions.RequestException as e:
            raise PublishError(f"Network error listing {prefix}: {e}") from e
        if not response.ok:
            raise PublishError(f"Storage list returned status {response.status_code}: {response.text[:500]}")
        return response.json()

    def remove(self, keys: list[str]) -> None:
        if not keys:
            return
        url = f"{self.base_url}/storage/v1/object/{self.bucket}"
        try:
            response = requests.delete(
                url, json={"prefixes": keys}, headers=self._headers("application/json"), timeout=30
            )
        except requests.exceptions.RequestException as e:
            raise PublishError(f"Network error deleting {len(keys)} objects: {e}") from e
        if not response.ok:
            raise PublishError(f"Storage delete returned status {response.status_code}: {response.text[:500]}")


def parse_created_at(value: str) -> datetime:
    """
    Parse a storage timestamp into an aware UTC datetime.

    Accepts a trailing ``Z`` and fractional seconds of any length, which
    ``datetime.fromisoformat`` only handles from Python 3.11 on.

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp
    """
    text = str(value).strip().replace("Z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def cleanup_expired_videos(
    storage: StorageClient,
    retention_days: int,
    logger: Any,
    prefix: str = "videos",
    batch_size: int = 100,
    now: Optional[datetime] = None,
) -> dict:
    """
    Delete stored videos older than ``retention_days``.

    Objects without a readable creation time are skipped. Deletion runs in batches; a
    failed batch is counted and logged, and the sweep continues.

    Returns:
        Dict with total, deleted, kept and errors counts
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=retention_days)
    objects = storage.list_objects(prefix)

    to_delete = []
    kept = 0
    for obj in objects:
        created_at = obj.get("created_at")
        if not created_at:
            logger.warning(f"Stored object {obj.get('name')} has no created_at, skipping")
            continue
        try:
            created = parse_created_at(created_at)
        except ValueError as e:
            logger.warning(f"Stored object {obj.get('name')} has unreadable created_at {created_at!r} ({e}), skipping")
            continue
        if created < cutoff:
            to_delete.append(f"{prefix}/{obj['name']}")
        else:
            kept += 1

    deleted = 0
    errors = 0
    for start in range(0, len(to_delete), batch_size):
        batch = to_delete[start:start + batch_size]
        try:
            storage.remove(batch)
            deleted += len(batch)
            logger.info(f"✅ Deleted {len(batch)} videos (batch {start // batch_size + 1})")
        except PublishError as e:
            errors += len(batch)
            logger.error(f"❌ Failed to delete batch {start // batch_size + 1}: {e}")

    logger.info(f"Cleanup finished: {len(objects)} found, {deleted} deleted, {kept} kept, {errors} errors")
    return {"total": len(objects), "deleted": deleted, "kept": kept, "errors": errors}
