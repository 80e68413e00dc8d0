"""
panelkit/context.py

Request-scoped panel context.

Everything that varies per request (panel id, db session, user, tenant,
locale) travels in a PanelContext passed explicitly to resources. Nothing here
is cached across requests.
"""
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session


@dataclass(frozen=True)
class PanelContext:
    """
    Per-request context

    Attributes:
        panel_id: id of the panel serving the request
        db: SQLAlchemy session of the request
        user: authenticated user, if any
        tenant: current tenant model, if the panel has tenancy
        tenant_routable: whether the tenant appears in generated URLs
        locale: active locale; falls back to settings.LOCALE
    """

    panel_id: str
    db: Optional[Session] = None
    user: Any = None
    tenant: Any = None
    tenant_routable: bool = True
    locale: Optional[str] = None

    @property
    def routable_tenant(self) -> Any:
        return self.tenant if self.tenant_routable else None


def current_panel_context(request: Request) -> PanelContext:
    """Dependency: the context stored by the panel's context dependency"""
    context = getattr(request.state, "panel_context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Panel context is not available for this route",
        )
    return context


__all__ = [
    "PanelContext",
    "current_panel_context",
]
