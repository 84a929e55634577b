from typing import Optional, List, Tuple, Dict

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from library_catalog.core.exceptions import ValidationError, NotFoundError, ConflictError
from library_catalog.core.logging import get_logger
from library_catalog.db.models import Member, Borrowing, utcnow
from library_catalog.services.common import flush_or_conflict

logger = get_logger("services.member")

REQUIRED_FIELDS = ("member_code", "member_name", "email")
OPTIONAL_FIELDS = ("phone", "address")
DUPLICATE_MEMBER_MESSAGE = "Member code or email already exists"


def _is_blank(value) -> bool:
    return value is None or not str(value).strip()


async def _ensure_unique(
    db: AsyncSession,
    member_code: Optional[str],
    email: Optional[str],
    exclude_id: Optional[int] = None,
) -> None:
    clauses = []
    if member_code:
        clauses.append(Member.member_code == member_code)
    if email:
        clauses.append(Member.email == email)
    if not clauses:
        return

    # Codes and emails stay reserved after a soft delete
    query = select(Member.id).where(or_(*clauses))
    if exclude_id is not None:
        query = query.where(Member.id != exclude_id)
    result = await db.execute(query.limit(1))
    if result.first() is not None:
        raise ConflictError(DUPLICATE_MEMBER_MESSAGE)


async def create_member(db: AsyncSession, data: dict) -> Member:
    """Register a new member."""
    missing = [field for field in REQUIRED_FIELDS if _is_blank(data.get(field))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    values = {field: str(data[field]).strip() for field in REQUIRED_FIELDS}
    for field in OPTIONAL_FIELDS:
        values[field] = None if _is_blank(data.get(field)) else data[field].strip()

    await _ensure_unique(db, values["member_code"], values["email"])

    member = Member(**values)
    db.add(member)
    await flush_or_conflict(db, DUPLICATE_MEMBER_MESSAGE)
    await db.refresh(member)

    logger.info(f"Member created: id={member.id} code='{member.member_code}'")
    return member


async def get_members(
    db: AsyncSession,
    page: int = 1,
    size: int = 10,
    search: Optional[str] = None,
    member_code: Optional[str] = None,
) -> Tuple[List[Member], int]:
    """List non-deleted members, optionally by name substring or exact code."""
    conditions = [Member.deleted_at.is_(None)]
    if search:
        conditions.append(Member.member_name.icontains(search, autoescape=True))
    if member_code:
        conditions.append(Member.member_code == member_code)

    query = (
        select(Member)
        .where(*conditions)
        .order_by(Member.member_name.asc(), Member.id.asc())
        .offset((page - 1) * size)
        .limit(size)
    )
    count_query = select(func.count()).select_from(Member).where(*conditions)

    result = await db.execute(query)
    members = list(result.scalars().all())

    total_result = await db.execute(count_query)
    total = total_result.scalar()

    return members, total


async def get_member_by_id(db: AsyncSession, member_id: int) -> Optional[Member]:
    """Get a single non-deleted member by ID."""
    result = await db.execute(
        select(Member).where(Member.id == member_id, Member.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def get_member_profile(
    db: AsyncSession, member_id: int
) -> Optional[Tuple[Member, Dict[str, int]]]:
    """Return a member with borrowing counters, or None."""
    member = await get_member_by_id(db, member_id)
    if not member:
        return None

    result = await db.execute(select(Borrowing).where(Borrowing.member_id == member_id))
    borrowings = result.scalars().all()

    stats = {
        "total_borrows": len(borrowings),
        "active_borrows": sum(1 for b in borrowings if b.returned_at is None),
        "overdue_count": sum(1 for b in borrowings if b.is_overdue),
    }
    return member, stats


async def update_member(db: AsyncSession, member_id: int, data: dict) -> Optional[Member]:
    """Partially update a member. Returns None when missing or deleted."""
    if not data:
        raise ValidationError("At least one field must be provided")

    member = await get_member_by_id(db, member_id)
    if not member:
        return None

    changes = {}
    for field in REQUIRED_FIELDS:
        if field in data:
            if _is_blank(data[field]):
                raise ValidationError(f"{field} cannot be empty")
            changes[field] = str(data[field]).strip()
    for field in OPTIONAL_FIELDS:
        if field in data:
            changes[field] = None if _is_blank(data[field]) else data[field].strip()

    await _ensure_unique(
        db, changes.get("member_code"), changes.get("email"), exclude_id=member_id
    )

    for key, value in changes.items():
        setattr(member, key, value)
    member.updated_at = utcnow()
    await flush_or_conflict(db, DUPLICATE_MEMBER_MESSAGE)
    await db.refresh(member)

    logger.info(f"Member updated: id={member_id}")
    return member


async def delete_member(db: AsyncSession, member_id: int) -> None:
    """Soft-delete a member that holds no unreturned copies."""
    member = await get_member_by_id(db, member_id)
    if not member:
        raise NotFoundError("Member not found")

    result = await db.execute(
        select(Borrowing.id)
        .where(Borrowing.member_id == member_id, Borrowing.returned_at.is_(None))
        .limit(1)
    )
    if result.first() is not None:
        logger.warning(f"Member delete blocked by active borrows: id={member_id}")
        raise ConflictError("Cannot delete member with active borrows")

    now = utcnow()
    member.deleted_at = now
    member.updated_at = now
    await flush_or_conflict(db, "Member could not be deleted")

    logger.info(f"Member deleted: id={member_id}")
