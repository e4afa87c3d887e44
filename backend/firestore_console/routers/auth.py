from fastapi import APIRouter, Depends, Query
from typing import Literal, Optional

from ..dependencies import get_user_service
from ..schemas import AuthUserPage, AuthUserQuerySpec, TenantList
from ..services.users import UserService

router = APIRouter(tags=["auth"])


@router.get("/auth/tenants", response_model=TenantList)
def list_tenants(svc: UserService = Depends(get_user_service)):
    return {"tenants": svc.list_tenants()}


@router.get("/auth/users", response_model=AuthUserPage)
def list_users(
    limit: int = Query(50),
    next_page_token: Optional[str] = Query(None, alias="nextPageToken"),
    tenant_id: Optional[str] = Query(None, alias="tenantId"),
    search: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    display_name: Optional[str] = Query(None, alias="displayName"),
    phone: Optional[str] = Query(None),
    status: Optional[Literal["enabled", "disabled"]] = Query(None),
    svc: UserService = Depends(get_user_service),
):
    spec = AuthUserQuerySpec(
        tenant_id=tenant_id or None,
        limit=limit,
        page_token=next_page_token or None,
        search=search or None,
        email=email or None,
        display_name=display_name or None,
        phone=phone or None,
        status=status,
    )
    return svc.list_users(spec)
