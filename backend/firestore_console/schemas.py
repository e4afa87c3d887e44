from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from .config import DEFAULT_DATABASE_ID


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FilterSpec(_Model):
    field: str
    operator: str = "=="
    value: str


class OrderSpec(_Model):
    field: str
    direction: str = "asc"


class QuerySpec(_Model):
    database_id: str = Field(DEFAULT_DATABASE_ID, alias="databaseId")
    collection_id: str = Field(..., alias="collectionId")
    filter: Optional[FilterSpec] = None
    order_by: Optional[OrderSpec] = Field(None, alias="orderBy")
    limit: int = 50
    cursor_doc_id: Optional[str] = Field(None, alias="cursorDocId")
    search_term: Optional[str] = Field(None, alias="searchTerm")


class DocumentRecord(_Model):
    id: str
    data: Dict[str, Any]


class Page(_Model):
    documents: List[DocumentRecord]
    total: int
    has_more: bool = Field(..., alias="hasMore")
    next_cursor: Optional[str] = Field(None, alias="nextCursor")
    cursor_applied: bool = Field(False, alias="cursorApplied")
    database: str
    requested_database: str = Field(..., alias="requestedDatabase")
    fell_back: bool = Field(False, alias="fellBack")


class UpsertRequest(_Model):
    id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class UpdateRequest(_Model):
    data: Dict[str, Any] = Field(default_factory=dict)


class MutationResponse(_Model):
    id: str
    success: bool = True
    database: str


class CollectionList(_Model):
    collections: List[str]
    database: str
    requested_database: str = Field(..., alias="requestedDatabase")
    fell_back: bool = Field(False, alias="fellBack")


class DatabaseInfo(_Model):
    id: str
    name: str
    display_name: str = Field(..., alias="displayName")


class DatabaseList(_Model):
    databases: List[DatabaseInfo]


class AuthUserQuerySpec(_Model):
    tenant_id: Optional[str] = Field(None, alias="tenantId")
    limit: int = 50
    page_token: Optional[str] = Field(None, alias="nextPageToken")
    search: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    phone: Optional[str] = None
    status: Optional[Literal["enabled", "disabled"]] = None


class AuthUserMetadata(_Model):
    creation_time: Optional[str] = Field(None, alias="creationTime")
    last_sign_in_time: Optional[str] = Field(None, alias="lastSignInTime")


class AuthUser(_Model):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    tenant_id: Optional[str] = Field(None, alias="tenantId")
    disabled: bool = False
    custom_claims: Dict[str, Any] = Field(default_factory=dict, alias="customClaims")
    metadata: AuthUserMetadata = Field(default_factory=AuthUserMetadata)


class AuthUserPage(_Model):
    users: List[AuthUser]
    has_more: bool = Field(..., alias="hasMore")
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")


class Tenant(_Model):
    id: str
    display_name: str = Field(..., alias="displayName")


class TenantList(_Model):
    tenants: List[Tenant]


class ConnectionStatus(_Model):
    initialized: bool
    project_id: Optional[str] = Field(None, alias="projectId")
    databases: List[str]
