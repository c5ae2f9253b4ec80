"""Audit trail browsing for staff."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from storefront.api.deps import PermissionDependency, get_audit
from storefront.core.exceptions import StoreError
from storefront.core.rbac import Permission
from storefront.services.audit import AuditLogger

router = APIRouter(prefix="/audit-logs", tags=["audit"])


class AuditLogResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    action: str
    table_name: str
    record_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


@router.get(
    "",
    response_model=List[AuditLogResponse],
    dependencies=[Depends(PermissionDependency(Permission.VIEW_AUDIT_LOGS))],
)
async def list_audit_logs(
    user_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    audit: AuditLogger = Depends(get_audit),
):
    """Newest entries first, optionally for one actor."""
    try:
        rows = await audit.recent(limit=limit, user_id=user_id)
    except StoreError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store unavailable")
    return [AuditLogResponse.model_validate({**row, "metadata": row.get("metadata") or {}}) for row in rows]
