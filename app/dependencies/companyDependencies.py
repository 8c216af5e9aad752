from typing import Annotated
from fastapi import Depends, Request, HTTPException, status
from uuid import UUID
from app.core.config import ReportingConfig, settings


def get_tenant_id(request: Request) -> UUID:
    """Extract tenant_id from request state set by TenantMiddleware"""
    if not hasattr(request.state, 'tenant_id'):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tenant context not found. Ensure X-Company-ID header is provided."
        )
    return request.state.tenant_id


def get_reporting_config(request: Request) -> ReportingConfig:
    """
    Reporting configuration for the current tenant.
    Tenants share the deployment defaults until per-tenant overrides are stored.
    """
    return settings.reporting_config


TenantId = Annotated[UUID, Depends(get_tenant_id)]
TenantReportingConfig = Annotated[ReportingConfig, Depends(get_reporting_config)]
