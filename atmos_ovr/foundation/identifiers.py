"""ID generation for published records."""

from __future__ import annotations

from uuid import uuid4

from atmos_ovr.domain.enums import AlertDomain


def new_alert_id(domain: AlertDomain) -> str:
    """Alert IDs are prefixed with their domain so they sort and grep nicely."""
    return f"{domain.value}-{uuid4().hex}"
