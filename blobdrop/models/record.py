from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator

RECORD_TTL_SECONDS = 5 * 60 * 60
RECORD_TTL = timedelta(seconds=RECORD_TTL_SECONDS)


class BlobRecord(BaseModel):
    """A stored blob. Write-once: records are never updated after creation.

    ``id`` stays ``None`` until a record store persists the record and assigns
    one; ``expires_at`` is derived and never stored on its own.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    payload: str = Field(min_length=1)
    content_type: str = Field(min_length=1, max_length=255)
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _require_aware_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("created_at must be timezone-aware")
        return v.astimezone(UTC)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + RECORD_TTL

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def with_id(self, record_id: str) -> BlobRecord:
        return self.model_copy(update={"id": record_id})
