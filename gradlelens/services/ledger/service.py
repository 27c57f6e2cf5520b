"""
Release Ledger Service.

Keeps a snapshot of every released descriptor per application id and
enforces that versionCode increases from one release to the next.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from ...core.exceptions import VersionRegressionError
from ...core.logging import get_logger
from ...models.descriptor import BuildDescriptor
from ...storage import StorageBackend
from ..render.service import to_structured

logger = get_logger(__name__)


class ReleaseRecord(BaseModel):
    """A recorded release."""

    application_id: str
    version_code: int
    version_name: str
    recorded_at: datetime
    descriptor_hash: str = Field(description="SHA-256 of the descriptor's structured form")
    descriptor: BuildDescriptor


class ReleaseLedger:
    """Release history backed by a storage backend.

    Keys are ``<prefix>/<applicationId>/<versionCode>.json`` with the version
    code zero-padded, so key order is release order.
    """

    def __init__(self, storage: StorageBackend, prefix: str = "releases") -> None:
        """Initialize the ledger."""
        self.storage = storage
        self.prefix = prefix.strip("/")

    def _key(self, application_id: str, version_code: int) -> str:
        return f"{self.prefix}/{application_id}/{version_code:010d}.json"

    @staticmethod
    def fingerprint(descriptor: BuildDescriptor) -> str:
        """Hash a descriptor's structured form."""
        canonical = json.dumps(to_structured(descriptor), sort_keys=True, separators=(",", ":"))
        return StorageBackend.compute_hash(canonical.encode("utf-8"))

    async def history(self, application_id: str) -> list[ReleaseRecord]:
        """Get all recorded releases of an application, oldest first."""
        keys = await self.storage.list_keys(f"{self.prefix}/{application_id}")
        return [await self.storage.load_model(key, ReleaseRecord) for key in keys]

    async def latest(self, application_id: str) -> ReleaseRecord | None:
        """Get the most recent release of an application."""
        keys = await self.storage.list_keys(f"{self.prefix}/{application_id}")
        if not keys:
            return None
        return await self.storage.load_model(keys[-1], ReleaseRecord)

    async def check_progression(self, descriptor: BuildDescriptor) -> ReleaseRecord | None:
        """Verify a descriptor's versionCode exceeds the last recorded one.

        Returns:
            The previous release, or None for a first release.

        Raises:
            VersionRegressionError: If versionCode does not increase.
        """
        application = descriptor.application
        previous = await self.latest(application.application_id)
        if previous is not None and application.version_code <= previous.version_code:
            raise VersionRegressionError(
                message=f"Last recorded release is {previous.version_name} ({previous.version_code})",
                context={"recorded_at": previous.recorded_at.isoformat()},
                application_id=application.application_id,
                previous_code=previous.version_code,
                new_code=application.version_code,
            )
        return previous

    async def record(self, descriptor: BuildDescriptor) -> ReleaseRecord:
        """Record a release.

        Args:
            descriptor: Descriptor of the release being shipped.

        Returns:
            ReleaseRecord: The stored record.

        Raises:
            VersionRegressionError: If versionCode does not increase.
        """
        previous = await self.check_progression(descriptor)
        application = descriptor.application
        record = ReleaseRecord(
            application_id=application.application_id,
            version_code=application.version_code,
            version_name=application.version_name,
            recorded_at=datetime.now(timezone.utc),
            descriptor_hash=self.fingerprint(descriptor),
            descriptor=descriptor,
        )
        key = await self.storage.store_model(
            self._key(application.application_id, application.version_code), record
        )
        logger.info(
            "Release recorded",
            application_id=record.application_id,
            version_code=record.version_code,
            previous_version_code=previous.version_code if previous else None,
            key=key,
        )
        return record
