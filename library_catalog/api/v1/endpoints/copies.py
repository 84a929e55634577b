from fastapi import APIRouter

from library_catalog.api.v1.dependencies import DbSession, RecordIdPath
from library_catalog.api.v1.errors import service_errors
from library_catalog.schemas.borrowing import (
    BorrowingResponse,
    BorrowingHistoryEntry,
    CopyHistoryResponse,
)
from library_catalog.services.borrowing import get_copy_history

router = APIRouter(prefix="/copies", tags=["Copies"])


@router.get(
    "/{copy_id}/history",
    response_model=CopyHistoryResponse,
    summary="Borrowing history of a copy",
    description="All borrowings of a copy, most recent first, each flagged with `is_overdue`.",
    responses={
        200: {"description": "Borrowing history"},
        404: {"description": "Copy not found"},
    },
)
async def copy_history(copy_id: RecordIdPath, db: DbSession):
    """Get the borrowing history of a single copy."""
    with service_errors():
        copy, book_title, entries = await get_copy_history(db, copy_id)

    history = [
        BorrowingHistoryEntry(
            **BorrowingResponse.model_validate(borrowing).model_dump(),
            book_title=book_title,
            copy_code=copy.copy_code,
            member_name=member_name,
        )
        for borrowing, member_name in entries
    ]
    return CopyHistoryResponse(
        copy_id=copy.id,
        copy_code=copy.copy_code,
        book_id=copy.book_id,
        book_title=book_title or "Unknown",
        current_status=copy.status,
        total_borrows=len(history),
        history=history,
    )
