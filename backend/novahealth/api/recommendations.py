from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import NotFoundError
from ..models import LabTest, User
from ..schemas import RecommendationDetail, RecommendationPublic, RecommendationStatusUpdate
from ..services.recommendations import RecommendationService
from .deps import get_current_user, get_recommendation_service
from .envelope import ok

router = APIRouter()


@router.get("")
async def list_recommendations(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    service: RecommendationService = Depends(get_recommendation_service),
):
    rows = await service.list_for_user(session, current_user.id)
    return ok([RecommendationDetail.model_validate(r) for r in rows], count=len(rows))


@router.patch("/{recommendation_id}")
async def update_recommendation_status(
    recommendation_id: int,
    body: RecommendationStatusUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    service: RecommendationService = Depends(get_recommendation_service),
):
    recommendation = await service.set_acceptance(session, current_user.id, recommendation_id, body.is_accepted)
    message = "Recommendation accepted" if body.is_accepted else "Recommendation rejected"
    return ok(RecommendationDetail.model_validate(recommendation), message=message)


@router.get("/lab-tests/{lab_test_id}")
async def list_lab_test_recommendations(
    lab_test_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    service: RecommendationService = Depends(get_recommendation_service),
):
    await _ensure_owned(session, lab_test_id, current_user)
    rows = await service.list_for_lab_test(session, lab_test_id)
    return ok([RecommendationPublic.model_validate(r) for r in rows], count=len(rows))


@router.post("/lab-tests/{lab_test_id}/regenerate")
async def regenerate_recommendations(
    lab_test_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    service: RecommendationService = Depends(get_recommendation_service),
):
    await _ensure_owned(session, lab_test_id, current_user)
    rows = await service.generate_recommendations(session, lab_test_id)
    return ok([RecommendationPublic.model_validate(r) for r in rows], count=len(rows))


async def _ensure_owned(session: AsyncSession, lab_test_id: int, user: User) -> None:
    owned = await session.scalar(
        select(LabTest.id).where(LabTest.id == lab_test_id, LabTest.user_id == user.id)
    )
    if owned is None:
        raise NotFoundError("Lab test not found", resource="lab_test")
