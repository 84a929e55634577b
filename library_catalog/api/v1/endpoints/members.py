from fastapi import APIRouter, HTTPException, status

from library_catalog.api.v1.dependencies import DbSession, Pagination, RecordIdPath
from library_catalog.api.v1.errors import service_errors
from library_catalog.schemas.common import Paging
from library_catalog.schemas.member import (
    MemberCreate,
    MemberUpdate,
    MemberResponse,
    MemberProfileResponse,
    MemberListResponse,
)
from library_catalog.services.common import calculate_pages
from library_catalog.services.member import (
    create_member,
    get_members,
    get_member_profile,
    update_member,
    delete_member,
)

router = APIRouter(prefix="/members", tags=["Members"])


@router.get(
    "",
    response_model=MemberListResponse,
    summary="List members",
    description="Paginated list of members ordered by name. `search` matches part of the name, `member_code` is exact.",
    responses={200: {"description": "Paginated list of members"}},
)
async def list_members(
    db: DbSession,
    paging: Pagination,
    search: str | None = None,
    member_code: str | None = None,
):
    """List members."""
    with service_errors():
        members, total = await get_members(
            db, page=paging.page, size=paging.size, search=search, member_code=member_code
        )
    return MemberListResponse(
        data=members,
        paging=Paging(
            page=paging.page, page_size=paging.size, total=total,
            pages=calculate_pages(total, paging.size),
        ),
    )


@router.post(
    "",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a member",
    responses={
        201: {"description": "Member created successfully"},
        400: {"description": "Missing required fields"},
        409: {"description": "Member code or email already exists"},
        422: {"description": "Malformed email"},
    },
)
async def create_member_endpoint(data: MemberCreate, db: DbSession):
    """Create a member."""
    with service_errors():
        return await create_member(db, data.model_dump())


@router.get(
    "/{member_id}",
    response_model=MemberProfileResponse,
    summary="Get member profile",
    description="Member details with active, total and overdue borrow counts.",
    responses={
        200: {"description": "Member profile"},
        404: {"description": "Member not found"},
    },
)
async def get_member(member_id: RecordIdPath, db: DbSession):
    """Get a member profile."""
    with service_errors():
        profile = await get_member_profile(db, member_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    member, stats = profile
    return MemberProfileResponse(
        **MemberResponse.model_validate(member).model_dump(), **stats
    )


@router.put(
    "/{member_id}",
    response_model=MemberResponse,
    summary="Update a member",
    responses={
        200: {"description": "Member updated successfully"},
        400: {"description": "Invalid data"},
        404: {"description": "Member not found"},
        409: {"description": "Member code or email already exists"},
    },
)
async def update_member_endpoint(member_id: RecordIdPath, data: MemberUpdate, db: DbSession):
    """Update a member."""
    with service_errors():
        member = await update_member(db, member_id, data.model_dump(exclude_unset=True))
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


@router.delete(
    "/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a member",
    description="Soft-delete a member. Refused while the member holds borrowed copies.",
    responses={
        204: {"description": "Member deleted successfully"},
        404: {"description": "Member not found"},
        409: {"description": "Member has active borrows"},
    },
)
async def delete_member_endpoint(member_id: RecordIdPath, db: DbSession):
    """Delete a member."""
    with service_errors():
        await delete_member(db, member_id)
