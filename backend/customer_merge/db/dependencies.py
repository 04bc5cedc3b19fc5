"""FastAPI request dependencies."""

from collections.abc import Iterator
from dataclasses import dataclass

from fastapi import Header
from sqlalchemy.orm import Session

from customer_merge.db.session import SessionLocal


@dataclass(slots=True, frozen=True)
class RequestContext:
    """Tenant and actor already established by the authenticating layer."""

    tenant_id: int
    actor: str


def get_db() -> Iterator[Session]:
    """Yield one session per request and always close it."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_request_context(
    x_tenant_id: int = Header(..., ge=1),
    x_actor: str = Header(..., min_length=1, max_length=255),
) -> RequestContext:
    """Read the tenant scope and acting operator from request headers."""

    return RequestContext(tenant_id=x_tenant_id, actor=x_actor.strip())
