from fastapi import APIRouter, HTTPException, status

from library_catalog.api.v1.dependencies import DbSession, RecordIdPath
from library_catalog.api.v1.errors import service_errors
from library_catalog.schemas.borrowing import BorrowingCreate, BorrowingResponse
from library_catalog.services.borrowing import (
    borrow_copy,
    return_borrowing,
    get_borrowing_by_id,
)

router = APIRouter(prefix="/borrowings", tags=["Borrowings"])


@router.post(
    "",
    response_model=BorrowingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Borrow a copy",
    description="Check an available copy out to a member. The due date defaults to 14 days.",
    responses={
        201: {"description": "Borrowing recorded"},
        400: {"description": "Due date not in the future"},
        404: {"description": "Copy or member not found"},
        409: {"description": "Copy is already borrowed"},
    },
)
async def create_borrowing(data: BorrowingCreate, db: DbSession):
    """Borrow a copy."""
    with service_errors():
        return await borrow_copy(
            db, copy_id=data.copy_id, member_id=data.member_id, due_date=data.due_date
        )


@router.get(
    "/{borrowing_id}",
    response_model=BorrowingResponse,
    summary="Get a borrowing",
    responses={
        200: {"description": "Borrowing details"},
        404: {"description": "Borrowing not found"},
    },
)
async def get_borrowing(borrowing_id: RecordIdPath, db: DbSession):
    """Get borrowing details."""
    borrowing = await get_borrowing_by_id(db, borrowing_id)
    if not borrowing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Borrowing not found")
    return borrowing


@router.post(
    "/{borrowing_id}/return",
    response_model=BorrowingResponse,
    summary="Return a copy",
    description="Record the return of a borrowed copy; the copy becomes available again.",
    responses={
        200: {"description": "Return recorded"},
        404: {"description": "Borrowing not found"},
        409: {"description": "Borrowing already returned"},
    },
)
async def return_borrowing_endpoint(borrowing_id: RecordIdPath, db: DbSession):
    """Return a borrowed copy."""
    with service_errors():
        return await return_borrowing(db, borrowing_id)
