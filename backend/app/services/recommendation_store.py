"""Recommendation store — persists AI match edges for fallback reads."""

import logging
import uuid
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendee import Attendee
from app.models.recommendation import Recommendation
from app.schemas.recommendation import RecommendationItem, RecommendationsResponse

logger = logging.getLogger(__name__)


def _parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class RecommendationStore:
    """Upserts AI results and serves the last known ones when the AI is down."""

    async def save(self, db: AsyncSession, result: RecommendationsResponse) -> int:
        """Upsert every edge of a result; returns the number of rows written.

        Self-matches and edges naming attendees outside the event are skipped.
        Previously active edges of the same source that the new result no
        longer contains are deactivated.
        """
        event_id = _parse_uuid(result.event_id)
        if event_id is None:
            logger.warning(f"Not persisting recommendations: invalid event id {result.event_id!r}")
            return 0

        known = await db.execute(select(Attendee.id).where(Attendee.event_id == event_id))
        event_attendees = set(known.scalars().all())

        by_source: dict[uuid.UUID, list[tuple[uuid.UUID, RecommendationItem]]] = defaultdict(list)
        for item in result.recommendations:
            source = _parse_uuid(item.source_attendee_id)
            target = _parse_uuid(item.target_attendee_id)
            if source is None or target is None or source == target:
                continue
            if source not in event_attendees or target not in event_attendees:
                logger.debug(f"Skipping edge {source} -> {target}: not attendees of event {event_id}")
                continue
            by_source[source].append((target, item))

        written = 0
        for source, edges in by_source.items():
            existing = await db.execute(
                select(Recommendation).where(
                    Recommendation.event_id == event_id,
                    Recommendation.source_attendee_id == source,
                )
            )
            rows = {row.target_attendee_id: row for row in existing.scalars().all()}

            for target, item in edges:
                row = rows.pop(target, None)
                if row:
                    row.score = item.score
                    row.reasoning = item.reasoning
                    row.is_active = True
                else:
                    db.add(Recommendation(
                        event_id=event_id,
                        source_attendee_id=source,
                        target_attendee_id=target,
                        score=item.score,
                        reasoning=item.reasoning,
                        is_active=True,
                    ))
                written += 1

            for stale in rows.values():
                stale.is_active = False

        try:
            await db.commit()
        except Exception as e:
            logger.error(f"Failed to persist recommendations for event {event_id}: {e}")
            await db.rollback()
            return 0
        return written

    async def load_active(
        self, db: AsyncSession, event_id: uuid.UUID, source_attendee_id: uuid.UUID
    ) -> RecommendationsResponse:
        """Last stored active recommendations for an attendee, best score first."""
        result = await db.execute(
            select(Recommendation)
            .where(
                Recommendation.event_id == event_id,
                Recommendation.source_attendee_id == source_attendee_id,
                Recommendation.is_active == True,
            )
            .order_by(Recommendation.score.desc())
        )
        return RecommendationsResponse(
            event_id=str(event_id),
            recommendations=[
                RecommendationItem(
                    source_attendee_id=str(row.source_attendee_id),
                    target_attendee_id=str(row.target_attendee_id),
                    score=row.score,
                    reasoning=row.reasoning or "",
                )
                for row in result.scalars().all()
            ],
        )


recommendation_store = RecommendationStore()
