"""Recommendation generation and the recommendation store operations."""
from __future__ import annotations

import logging
import re
from typing import Protocol

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import candidate_limit
from ..exceptions import NotFoundError
from ..models import LabTest, Recommendation, Supplement
from .recommendation_engine import build_reason, evaluate_range, score_priority

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[^\W_]+", re.UNICODE)


def search_tokens(text: str) -> list[str]:
    """Lower-cased word tokens of at least two characters, first occurrence order."""
    seen: list[str] = []
    for token in _TOKEN_RE.findall((text or "").lower()):
        if len(token) >= 2 and token not in seen:
            seen.append(token)
    return seen


def _like_contains(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _word_pattern(text: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![^\W_]){re.escape(text)}(?![^\W_])", re.IGNORECASE)


class CandidateFinder(Protocol):
    async def find_candidates(
        self, session: AsyncSession, result_name: str, limit: int = 3
    ) -> list[Supplement]: ...


class TextSearchCandidateFinder:
    """
    Free-text match of a result name against supplement name/description.

    Tokens match whole words only: ILIKE narrows the rows in the database,
    then each row is re-checked against word boundaries ("ALT" must not hit
    "health"). Any token may match; rows are ranked by a simple relevance
    score (whole phrase in the name first, then token hits in name, then in
    description), ties by name.
    """

    async def find_candidates(
        self, session: AsyncSession, result_name: str, limit: int = 3
    ) -> list[Supplement]:
        phrase = " ".join((result_name or "").split())
        tokens = search_tokens(phrase)
        if not tokens:
            return []

        clauses = []
        for token in tokens:
            pattern = _like_contains(token)
            clauses.append(Supplement.name.ilike(pattern, escape="\\"))
            clauses.append(Supplement.description.ilike(pattern, escape="\\"))
        rows = (await session.execute(select(Supplement).where(or_(*clauses)))).scalars().all()

        phrase_re = _word_pattern(phrase)
        token_res = [_word_pattern(token) for token in tokens]
        scored: list[tuple[int, Supplement]] = []
        for supplement in rows:
            name = supplement.name or ""
            description = supplement.description or ""
            relevance = 4 if phrase_re.search(name) else 0
            for token_re in token_res:
                if token_re.search(name):
                    relevance += 2
                if token_re.search(description):
                    relevance += 1
            if relevance:
                scored.append((relevance, supplement))

        scored.sort(key=lambda item: (-item[0], item[1].name))
        return [supplement for _, supplement in scored[:limit]]


class RecommendationService:
    """Builds and serves supplement recommendations for lab tests."""

    def __init__(self, finder: CandidateFinder | None = None, limit: int | None = None) -> None:
        self._finder = finder or TextSearchCandidateFinder()
        self._limit = limit if limit is not None else candidate_limit()

    async def generate_recommendations(self, session: AsyncSession, lab_test_id: int) -> list[Recommendation]:
        """
        Replace the whole recommendation set of a lab test.

        Delete of the old set and insert of the new one run as one unit: the
        session is committed only when every candidate is staged, any error
        rolls the unit back and is re-raised. The lab test row is locked for the
        duration so two regenerations of the same test cannot interleave.
        """
        try:
            lab_test = await session.scalar(
                select(LabTest)
                .where(LabTest.id == lab_test_id)
                .options(selectinload(LabTest.results))
                .with_for_update(of=LabTest)
                .execution_options(populate_existing=True)
            )
            if lab_test is None:
                raise NotFoundError("Lab test not found", resource="lab_test")

            await session.execute(delete(Recommendation).where(Recommendation.lab_test_id == lab_test.id))

            abnormal = [r for r in lab_test.results if r.is_abnormal]
            if not abnormal:
                await session.commit()
                logger.info("Lab test %s has no abnormal results, recommendations cleared", lab_test.id)
                return []

            # supplement_id -> запись; одна добавка на анализ, оставляем больший приоритет
            staged: dict[int, Recommendation] = {}
            for result in abnormal:
                candidates = await self._finder.find_candidates(session, result.name, limit=self._limit)
                if not candidates:
                    logger.debug("No supplements matched result %r of lab test %s", result.name, lab_test.id)
                    continue

                evaluation = evaluate_range(result.value, result.reference_range_low, result.reference_range_high)
                priority = score_priority(evaluation)
                reason = build_reason(result.name, evaluation)

                for supplement in candidates:
                    current = staged.get(supplement.id)
                    if current is not None and current.priority >= priority:
                        continue
                    staged[supplement.id] = Recommendation(
                        user_id=lab_test.user_id,
                        lab_test_id=lab_test.id,
                        supplement_id=supplement.id,
                        supplement=supplement,
                        reason=reason,
                        priority=priority,
                        dosage=supplement.recommended_dosage,
                        is_accepted=False,
                    )

            recommendations = list(staged.values())
            session.add_all(recommendations)
            await session.commit()
        except NotFoundError:
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            logger.exception("Error generating recommendations for lab test %s", lab_test_id)
            raise

        logger.info(
            "Generated %d recommendations for lab test %s (%d abnormal results)",
            len(recommendations),
            lab_test_id,
            len(abnormal),
        )
        return recommendations

    async def list_for_user(self, session: AsyncSession, user_id: int) -> list[Recommendation]:
        rows = await session.execute(
            select(Recommendation)
            .where(Recommendation.user_id == user_id)
            .options(selectinload(Recommendation.supplement), selectinload(Recommendation.lab_test))
            .order_by(Recommendation.priority.desc(), Recommendation.created_at.desc(), Recommendation.id.desc())
        )
        return list(rows.scalars().all())

    async def list_for_lab_test(self, session: AsyncSession, lab_test_id: int) -> list[Recommendation]:
        rows = await session.execute(
            select(Recommendation)
            .where(Recommendation.lab_test_id == lab_test_id)
            .options(selectinload(Recommendation.supplement))
            .order_by(Recommendation.priority.desc(), Recommendation.id)
        )
        return list(rows.scalars().all())

    async def set_acceptance(
        self, session: AsyncSession, user_id: int, recommendation_id: int, is_accepted: bool
    ) -> Recommendation:
        recommendation = await session.scalar(
            select(Recommendation)
            .where(Recommendation.id == recommendation_id, Recommendation.user_id == user_id)
            .options(selectinload(Recommendation.supplement), selectinload(Recommendation.lab_test))
        )
        if recommendation is None:
            raise NotFoundError("Recommendation not found", resource="recommendation")

        recommendation.is_accepted = is_accepted
        await session.commit()
        logger.info("Recommendation %s marked accepted=%s", recommendation.id, is_accepted)
        return recommendation

    async def delete_for_lab_test(self, session: AsyncSession, lab_test_id: int) -> int:
        """Delete a lab test's recommendations without committing; returns the row count."""
        result = await session.execute(delete(Recommendation).where(Recommendation.lab_test_id == lab_test_id))
        return result.rowcount or 0
