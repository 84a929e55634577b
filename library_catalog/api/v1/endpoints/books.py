from fastapi import APIRouter, HTTPException, Query, status

from library_catalog.api.v1.dependencies import DbSession, Pagination, RecordIdPath
from library_catalog.api.v1.errors import service_errors
from library_catalog.schemas.book import (
    BookCreate,
    BookUpdate,
    BookResponse,
    BookDetailResponse,
    BookListResponse,
)
from library_catalog.schemas.common import MAX_DB_INT, Paging
from library_catalog.schemas.copy import (
    CopyCreate,
    CopyResponse,
    CopyAddResponse,
    BookCopiesResponse,
)
from library_catalog.services.book import (
    create_book,
    get_books,
    get_book_details,
    update_book,
    delete_book,
)
from library_catalog.services.common import calculate_pages
from library_catalog.services.copy import add_copies, get_book_copies, summarize_copies

router = APIRouter(prefix="/books", tags=["Books"])


@router.get(
    "",
    response_model=BookListResponse,
    summary="List books",
    description=(
        "Retrieve a paginated list of non-deleted books ordered by title. "
        "`title`, `author`, `isbn` and `genre` are case-insensitive substring "
        "filters; `year` is an exact match."
    ),
    responses={200: {"description": "Paginated list of books"}},
)
async def list_books(
    db: DbSession,
    paging: Pagination,
    title: str | None = None,
    author: str | None = None,
    isbn: str | None = None,
    genre: str | None = None,
    year: int | None = Query(None, ge=0, le=MAX_DB_INT),
):
    """List books with filters and pagination."""
    with service_errors():
        books, total = await get_books(
            db, page=paging.page, size=paging.size, title=title, author=author,
            isbn=isbn, genre=genre, year=year,
        )
    return BookListResponse(
        data=books,
        paging=Paging(
            page=paging.page, page_size=paging.size, total=total,
            pages=calculate_pages(total, paging.size),
        ),
    )


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book",
    description="Add a book to the catalog, optionally linking existing authors and genres.",
    responses={
        201: {"description": "Book created successfully"},
        400: {"description": "Missing title, invalid year or unknown author/genre"},
        409: {"description": "ISBN already used by another book"},
    },
)
async def create_book_endpoint(data: BookCreate, db: DbSession):
    """Create a book."""
    with service_errors():
        return await create_book(db, data.model_dump())


@router.get(
    "/{book_id}",
    response_model=BookDetailResponse,
    summary="Get book details",
    description="Retrieve a book with its authors, genres, copy counts and copies.",
    responses={
        200: {"description": "Book details"},
        404: {"description": "Book not found"},
    },
)
async def get_book(book_id: RecordIdPath, db: DbSession):
    """Get book details."""
    with service_errors():
        book = await get_book_details(db, book_id)
        if not book:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
        _, copies = await get_book_copies(db, book_id)

    response = BookDetailResponse.model_validate(book)
    response.copies = [CopyResponse.model_validate(c) for c in copies]
    return response


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description=(
        "Partially update a book; only supplied fields change. "
        "`author_ids`/`genre_ids` replace the existing links, `[]` clears them."
    ),
    responses={
        200: {"description": "Book updated successfully"},
        400: {"description": "Invalid data"},
        404: {"description": "Book not found"},
        409: {"description": "ISBN already used by another book"},
    },
)
async def update_book_endpoint(book_id: RecordIdPath, data: BookUpdate, db: DbSession):
    """Update a book."""
    with service_errors():
        book = await update_book(db, book_id, data.model_dump(exclude_unset=True))
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
    return book


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Soft-delete a book. Refused while any of its copies is out on loan.",
    responses={
        204: {"description": "Book deleted successfully"},
        404: {"description": "Book not found"},
        409: {"description": "Book has active borrows"},
    },
)
async def delete_book_endpoint(book_id: RecordIdPath, db: DbSession):
    """Delete a book."""
    with service_errors():
        await delete_book(db, book_id)


@router.post(
    "/{book_id}/copies",
    response_model=CopyAddResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add copies",
    description="Add 1–100 available copies with sequential codes `BOOK-{book}-{seq}`.",
    responses={
        201: {"description": "Copies created"},
        400: {"description": "Quantity out of range"},
        404: {"description": "Book not found"},
    },
)
async def add_copies_endpoint(book_id: RecordIdPath, data: CopyCreate, db: DbSession):
    """Add physical copies to a book."""
    with service_errors():
        copies = await add_copies(db, book_id, data.quantity)
    return CopyAddResponse(
        message=f"{len(copies)} copy/copies added successfully",
        copies=copies,
    )


@router.get(
    "/{book_id}/copies",
    response_model=BookCopiesResponse,
    summary="List copies",
    description="List a book's copies with an availability summary.",
    responses={
        200: {"description": "Copies of the book"},
        404: {"description": "Book not found"},
    },
)
async def list_copies(book_id: RecordIdPath, db: DbSession):
    """List copies of a book."""
    with service_errors():
        book, copies = await get_book_copies(db, book_id)
    return BookCopiesResponse(
        book_id=book.id,
        book_title=book.book_title,
        summary=summarize_copies(copies),
        copies=copies,
    )
