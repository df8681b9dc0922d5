"""Tenant identity threaded through serialization and transport."""

from __future__ import annotations

from dataclasses import dataclass

TENANT_HEADER = "x-tenant-key"
TENANT_LABEL = "tenant_id"


@dataclass(frozen=True)
class TenantContext:
    """Opaque tenant identifier.

    Sent as the `x-tenant-key` header on pushes and embedded as the
    `tenant_id` label in exposition output.

    Attributes:
        tenant_id: Non-empty tenant identifier.
    """

    tenant_id: str

    def __post_init__(self) -> None:
        if not self.tenant_id or not self.tenant_id.strip():
            raise ValueError("tenant_id cannot be empty")

    def __str__(self) -> str:
        return self.tenant_id
