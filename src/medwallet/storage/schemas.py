"""Pydantic schemas for storage listings."""

from __future__ import annotations

from pydantic import BaseModel, Field


class StorageObject(BaseModel):
    """One entry returned by an object listing."""

    name: str = Field(..., description="Object name relative to the listed prefix")
    is_folder: bool = Field(False, description="True for prefixes with children")
    content_type: str = Field(
        "application/octet-stream",
        description="MIME type reported by the backend",
    )
    size: int | None = Field(None, description="Size in bytes, if known")
    created_at: str = Field("", description="ISO timestamp of creation, if known")
    updated_at: str = Field("", description="ISO timestamp of last update, if known")

    @classmethod
    def from_supabase(cls, item: dict) -> StorageObject:
        """Build from a Supabase Storage list entry.

        Folders come back with ``id`` set to null and no metadata.
        """
        metadata = item.get("metadata") or {}
        return cls(
            name=item.get("name", ""),
            is_folder=item.get("id") is None,
            content_type=(
                metadata.get("mimetype")
                or metadata.get("contentType")
                or "application/octet-stream"
            ),
            size=metadata.get("size"),
            created_at=item.get("created_at") or "",
            updated_at=item.get("updated_at") or "",
        )
