"""
Object storage client backed by Supabase Storage
"""

import logging

from supabase import AsyncClient, acreate_client

logger = logging.getLogger(__name__)


class SupabaseObjectStore:
    """
    Thin async wrapper around a Supabase storage bucket API.

    Only ``put`` and ``close`` are exposed, so tests can substitute any
    object with the same coroutines.
    """

    def __init__(self, client: AsyncClient):
        self.client = client

    @classmethod
    async def connect(cls, url: str, service_key: str) -> "SupabaseObjectStore":
        """Create an authenticated store from project URL and service key"""
        client = await acreate_client(url, service_key)
        return cls(client)

    async def put(
        self,
        bucket: str,
        key: str,
        content: str,
        content_type: str = "text/csv",
        overwrite: bool = True,
    ) -> None:
        """
        Upload ``content`` to ``bucket/key``.

        Raises whatever the storage client raises; callers wrap it.
        """
        payload = content.encode("utf-8")
        await self.client.storage.from_(bucket).upload(
            path=key,
            file=payload,
            file_options={
                "content-type": content_type,
                "upsert": "true" if overwrite else "false",
            },
        )
        logger.debug(f"Stored {len(payload)} bytes at {bucket}/{key}")

    async def close(self) -> None:
        """Close the HTTP sessions held by the storage and auth clients"""
        await self.client.storage.session.aclose()
        await self.client.auth.close()
