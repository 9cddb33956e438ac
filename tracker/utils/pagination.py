import math

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def paginate(db: AsyncSession, query, page: int, limit: int):
    """Run ``query`` for one 1-based page. Returns (items, total)."""
    total = await db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return result.scalars().unique().all(), total or 0


def envelope(data=None, message: str | None = None, **meta) -> dict:
    body = {"success": True}
    if message is not None:
        body["message"] = message
    body.update(meta)
    if data is not None:
        body["data"] = data
    return body


def page_envelope(items: list, total: int, page: int, limit: int) -> dict:
    return envelope(
        items,
        count=len(items),
        total=total,
        totalPages=math.ceil(total / limit) if limit else 0,
        currentPage=page,
    )
