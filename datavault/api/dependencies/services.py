"""Service access and request context dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from datavault.api.dependencies.rate_limit import extract_client_ip
from datavault.services import AuditContext, ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    """Services wired around the application's store handle."""
    return request.app.state.services


def get_audit_context(request: Request) -> AuditContext:
    """Caller address and user agent for audit entries."""
    return AuditContext(
        ip_address=extract_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


Services = Annotated[ServiceContainer, Depends(get_services)]
RequestContext = Annotated[AuditContext, Depends(get_audit_context)]
