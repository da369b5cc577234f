from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import ConflictError, NotFoundError
from ..models import Recommendation, Supplement, User
from ..schemas import SupplementCategory, SupplementPayload, SupplementPublic
from ..services.recommendations import TextSearchCandidateFinder
from .deps import get_current_user, require_admin
from .envelope import ok

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_supplement(session: AsyncSession, supplement_id: int) -> Supplement:
    supplement = await session.get(Supplement, supplement_id)
    if not supplement:
        raise NotFoundError("Supplement not found", resource="supplement")
    return supplement


async def _ensure_unique_name(session: AsyncSession, name: str, exclude_id: int | None = None) -> None:
    stmt = select(Supplement.id).where(Supplement.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Supplement.id != exclude_id)
    if await session.scalar(stmt):
        raise ConflictError(f"Supplement '{name}' already exists")


def _apply(supplement: Supplement, body: SupplementPayload) -> None:
    supplement.name = body.name.strip()
    supplement.description = body.description
    supplement.benefits = list(body.benefits)
    supplement.category = body.category.value
    supplement.recommended_dosage = body.recommended_dosage
    supplement.recommended_for_conditions = [c.model_dump() for c in body.recommended_for_conditions]
    supplement.contraindications = list(body.contraindications)
    supplement.price = Decimal(str(body.price))
    supplement.image_url = body.image_url
    supplement.in_stock = body.in_stock


@router.get("")
async def list_supplements(
    category: SupplementCategory | None = None,
    in_stock: bool | None = None,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Supplement).order_by(Supplement.name)
    if category is not None:
        stmt = stmt.where(Supplement.category == category.value)
    if in_stock is not None:
        stmt = stmt.where(Supplement.in_stock == in_stock)

    rows = (await session.execute(stmt)).scalars().all()
    return ok([SupplementPublic.model_validate(s) for s in rows], count=len(rows))


@router.get("/search")
async def search_supplements(
    query: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    rows = await TextSearchCandidateFinder().find_candidates(session, query, limit=limit)
    return ok([SupplementPublic.model_validate(s) for s in rows], count=len(rows), query=query)


@router.get("/{supplement_id}")
async def get_supplement(
    supplement_id: int,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return ok(SupplementPublic.model_validate(await _get_supplement(session, supplement_id)))


@router.post("", status_code=201)
async def create_supplement(
    body: SupplementPayload,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await _ensure_unique_name(session, body.name.strip())

    supplement = Supplement()
    _apply(supplement, body)
    session.add(supplement)
    await session.commit()
    await session.refresh(supplement)
    logger.info("Supplement %s created by admin %s", supplement.id, admin.id)
    return ok(SupplementPublic.model_validate(supplement), message="Supplement created successfully")


@router.put("/{supplement_id}")
async def update_supplement(
    supplement_id: int,
    body: SupplementPayload,
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    supplement = await _get_supplement(session, supplement_id)
    await _ensure_unique_name(session, body.name.strip(), exclude_id=supplement.id)

    _apply(supplement, body)
    await session.commit()
    await session.refresh(supplement)
    return ok(SupplementPublic.model_validate(supplement), message="Supplement updated successfully")


@router.delete("/{supplement_id}")
async def delete_supplement(
    supplement_id: int,
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    supplement = await _get_supplement(session, supplement_id)
    await session.execute(delete(Recommendation).where(Recommendation.supplement_id == supplement.id))
    await session.delete(supplement)
    await session.commit()
    return ok(message="Supplement deleted successfully")
