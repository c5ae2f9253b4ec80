"""Notification inbox and maintenance endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from storefront.api.deps import PermissionDependency, get_identity, get_store, get_triggers
from storefront.core.guard import SessionSnapshot
from storefront.core.rbac import Permission
from storefront.db.store import DataStore, Filter
from storefront.services.cleanup import CleanupJobs
from storefront.services.notifications import NotificationTriggers

router = APIRouter(prefix="/notifications", tags=["notifications"])


# Schemas
class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    notification_type: Optional[str] = None
    priority: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None


class CleanupResponse(BaseModel):
    audit_logs_deleted: int
    notifications_deleted: int
    error: Optional[str] = None
    duration_ms: int


def _require_user(identity: SessionSnapshot = Depends(get_identity)) -> SessionSnapshot:
    if not identity.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return identity


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    identity: SessionSnapshot = Depends(_require_user),
    store: DataStore = Depends(get_store),
):
    """The caller's own notifications, newest first."""
    filters = [Filter.eq("user_id", identity.user_id)]
    if unread_only:
        filters.append(Filter.eq("is_read", False))
    rows = await store.select(
        "notifications", filters=filters, order_by="created_at", descending=True, limit=limit,
    )
    return [NotificationResponse.model_validate(row) for row in rows]


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    notification_id: str,
    identity: SessionSnapshot = Depends(_require_user),
    store: DataStore = Depends(get_store),
):
    updated = await store.update(
        "notifications",
        {"is_read": True},
        [Filter.eq("id", notification_id), Filter.eq("user_id", identity.user_id)],
    )
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")


@router.get(
    "/cleanup/stats",
    response_model=Dict[str, Any],
    dependencies=[Depends(PermissionDependency(Permission.ACCESS_ADMIN_PANEL))],
)
async def cleanup_stats(store: DataStore = Depends(get_store)):
    stats = await CleanupJobs(store).get_cleanup_stats()
    if stats is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store unavailable")
    return stats


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    dependencies=[Depends(PermissionDependency(Permission.ACCESS_ADMIN_PANEL))],
)
async def run_cleanup(
    store: DataStore = Depends(get_store),
    triggers: NotificationTriggers = Depends(get_triggers),
):
    """Run the retention jobs now; superadmins receive the summary."""
    return await CleanupJobs(store, triggers).run_all()
