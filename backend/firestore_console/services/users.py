import logging
from typing import Any, List

from ..errors import QueryError, store_errors
from ..schemas import AuthUser, AuthUserMetadata, AuthUserPage, AuthUserQuerySpec, Tenant
from ..utils import ms_to_iso
from .firebase import ConnectionManager

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 1000


def to_auth_user(record: Any) -> AuthUser:
    meta = getattr(record, "user_metadata", None)
    return AuthUser(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        phone_number=record.phone_number,
        tenant_id=getattr(record, "tenant_id", None),
        disabled=bool(record.disabled),
        custom_claims=record.custom_claims or {},
        metadata=AuthUserMetadata(
            creation_time=ms_to_iso(getattr(meta, "creation_timestamp", None)),
            last_sign_in_time=ms_to_iso(getattr(meta, "last_sign_in_timestamp", None)),
        ),
    )


def _contains(haystack, needle: str, ignore_case: bool = False) -> bool:
    if not haystack:
        return False
    if ignore_case:
        return needle.lower() in haystack.lower()
    return needle in haystack


def filter_users(users: List[AuthUser], spec: AuthUserQuerySpec) -> List[AuthUser]:
    """Narrow one fetched page; filters never reach users on other pages."""
    if spec.email:
        users = [u for u in users if _contains(u.email, spec.email)]
    if spec.display_name:
        users = [u for u in users if _contains(u.display_name, spec.display_name, ignore_case=True)]
    if spec.phone:
        users = [u for u in users if _contains(u.phone_number, spec.phone)]
    if spec.status:
        want_disabled = spec.status == "disabled"
        users = [u for u in users if u.disabled == want_disabled]
    if spec.search:
        term = spec.search
        users = [
            u for u in users
            if _contains(u.email, term, True)
            or _contains(u.display_name, term, True)
            or _contains(u.uid, term, True)
            or _contains(u.phone_number, term, True)
        ]
    return users


class UserService:
    def __init__(self, conn_mgr: ConnectionManager) -> None:
        self._conn_mgr = conn_mgr

    def list_tenants(self) -> List[Tenant]:
        tenants = self._conn_mgr.list_tenants()
        return [Tenant(id=t.tenant_id, display_name=t.display_name or t.tenant_id) for t in tenants]

    def list_users(self, spec: AuthUserQuerySpec) -> AuthUserPage:
        if not 0 < spec.limit <= MAX_PAGE_SIZE:
            raise QueryError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        client = self._conn_mgr.auth_client(spec.tenant_id)
        with store_errors("fetch auth users"):
            result = client.list_users(page_token=spec.page_token or None, max_results=spec.limit)
        users = [to_auth_user(u) for u in result.users]
        fetched = len(users)
        users = filter_users(users, spec)
        logger.info("Fetched %d auth users (%d after filters) for tenant %s",
                    fetched, len(users), spec.tenant_id or "-")
        next_token = result.next_page_token or None
        return AuthUserPage(users=users, has_more=bool(next_token), next_page_token=next_token)
