"""
Pydantic models for validating the package documents read from MongoDB.

Only the `backups` field is ever projected, so these models describe just
that part of the document. Unknown keys are ignored.
"""

from typing import List, Optional

from pydantic import BaseModel


class BackupDetails(BaseModel):
    """
    Represents one entry of a package's `backups` array.

    `hash` and `size` are optional because older packages were stored
    without them.
    """

    url: str
    hash: Optional[str] = None
    size: Optional[int] = None


class PackageDocument(BaseModel):
    """Represents the projected package document."""

    backups: List[BackupDetails] = []
