from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr

from library_catalog.schemas.common import Paging


# Presence of required fields is checked by the service (400, not 422).
class MemberCreate(BaseModel):
    member_code: Optional[str] = None
    member_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class MemberUpdate(BaseModel):
    member_code: Optional[str] = None
    member_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class MemberResponse(BaseModel):
    id: int
    member_code: str
    member_name: str
    email: str
    phone: Optional[str]
    address: Optional[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MemberProfileResponse(MemberResponse):
    active_borrows: int = 0
    total_borrows: int = 0
    overdue_count: int = 0


class MemberListResponse(BaseModel):
    data: List[MemberResponse]
    paging: Paging
