"""
Pydantic schemas for panel HTTP responses
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ---- Auth ----

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ---- Records ----

class RecordResponse(BaseModel):
    key: str
    title: Optional[str] = None


class RecordListResponse(BaseModel):
    resource: str
    total: int
    page: int
    per_page: int
    records: List[RecordResponse]


class CreateRecordResponse(BaseModel):
    resource: str
    model_label: str


# ---- Panel pages ----

class DashboardResponse(BaseModel):
    panel: str
    title: str
    navigation_items: int = 0


# ---- Global search ----

class GlobalSearchActionResponse(BaseModel):
    name: str
    label: str
    url: Optional[str] = None


class GlobalSearchResultResponse(BaseModel):
    title: str
    url: str
    details: Dict[str, str] = Field(default_factory=dict)
    actions: List[GlobalSearchActionResponse] = Field(default_factory=list)


class GlobalSearchGroupResponse(BaseModel):
    label: str
    results: List[GlobalSearchResultResponse]


# ---- Navigation ----

class NavigationItemResponse(BaseModel):
    label: str
    url: str
    icon: Optional[str] = None
    active_icon: Optional[str] = None
    badge: Optional[str] = None
    badge_color: Optional[str] = None
    sort: Optional[int] = None
    is_active: bool = False


class NavigationGroupResponse(BaseModel):
    label: Optional[str] = None
    items: List[NavigationItemResponse]
