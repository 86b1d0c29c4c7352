# backend/studio_booking/schemas/package.py
"""Client package read model."""

from datetime import datetime
from typing import Optional

from .base import StandardizedModel


class PackageInfo(StandardizedModel):
    """
    Package state of a client.

    ``is_expired`` is true only when an expiry exists and has passed.
    """

    client_id: str
    has_active_package: bool
    active_sessions: int
    package_expiry: Optional[datetime] = None
    is_expired: bool
