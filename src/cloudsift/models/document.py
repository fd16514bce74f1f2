"""Document models — Items to index and the JSON batch entries sent for them."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class IndexableDocument(BaseModel):
    """One item handed over by the search abstraction for indexing."""

    id: str | int = Field(description="Caller-visible document identifier")
    item_type: str | None = Field(default=None, description="Item type, checked against exclusion rules")
    fields: dict[str, Any] = Field(default_factory=dict, description="Abstract field name -> value(s)")


class BatchEntry(BaseModel):
    """One entry of a document batch, in the service's batch shape."""

    type: Literal["add", "delete"]
    id: str = Field(description="Encoded document identifier")
    version: int = Field(ge=0, description="Monotonic version; later versions supersede earlier ones")
    lang: str | None = Field(default=None, description="Document language (adds only)")
    fields: dict[str, Any] | None = Field(default=None, description="Encoded field name -> value(s) (adds only)")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class BatchReport(BaseModel):
    """Aggregate outcome of a document submission."""

    sent: int = Field(default=0, description="Entries accepted by the service")
    skipped: int = Field(default=0, description="Items dropped by exclusion rules")
    batches: int = Field(default=0, description="HTTP batch requests issued")


class SyncReport(BaseModel):
    """Aggregate outcome of one index synchronization pass."""

    added: int = Field(default=0, description="Field definitions added or updated")
    removed: int = Field(default=0, description="Obsolete field definitions removed")
    failed: int = Field(default=0, description="Per-field operations that failed")
    first_error: str | None = Field(default=None, description="Message of the first per-field failure")
    reindexed: bool = Field(default=False, description="A reindex was triggered successfully")
    reindex_error: str | None = Field(default=None, description="Message of a failed reindex trigger")

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)

    def summary(self) -> str:
        text = f"{self.added} field(s) added or updated, {self.removed} removed"
        if self.failed:
            text += f", {self.failed} failed (first error: {self.first_error})"
        if self.reindex_error:
            text += f"; reindex failed: {self.reindex_error}"
        return text
