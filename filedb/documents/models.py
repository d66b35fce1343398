"""
FileDB Request Models — Pydantic payloads for the HTTP surface.

Field names follow the wire format (camelCase) used by existing clients:
    {"fileName": "user.json", "keyName": "email", "value": "a@b.com"}
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class FileRequest(BaseModel):
    """Addresses a whole document."""
    fileName: str = Field(description="Document name, e.g. 'user.json'")


class KeyRequest(FileRequest):
    """Addresses one top-level property of a document."""
    keyName: str = Field(description="Top-level property name")


class SetRequest(KeyRequest):
    """Assigns a value to a property. ``value`` must be present, but may be null."""
    value: Any = Field(..., description="New property value")


class StatusResponse(BaseModel):
    up: bool = True
    owner: str
    timestamp: int


# Documents rewritten by DocumentStore.reset()
SEED_DOCUMENTS: Dict[str, Dict[str, Any]] = {
    "andrew.json": {
        "firstname": "Andrew",
        "lastname": "Maney",
        "email": "amaney@talentpath.com",
    },
    "scott.json": {
        "firstname": "Scott",
        "lastname": "Roberts",
        "email": "sroberts@talentpath.com",
        "username": "scoot",
    },
    "post.json": {
        "title": "Async/Await lesson",
        "description": "How to write asynchronous JavaScript",
        "date": "July 15, 2019",
    },
}
