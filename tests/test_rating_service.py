"""
Wayfarer Backend - Rating Service and Aggregator Tests
========================================================

What:  The stored mean rating tracks every rating write.
How:   Real SQL against SQLite, so the recompute statement itself is exercised.
"""

import pytest

from wayfarer.exceptions import NotFoundError
from wayfarer.models import TouristSpot
from wayfarer.schemas.rating import RatingCreate
from wayfarer.services.cache_service import spot_key
from wayfarer.services.rating_service import rating_service


def _rating(score: int) -> RatingCreate:
    return RatingCreate(score=score, summary_comment=f"Scored {score}")


async def _stored_average(session_factory, spot_id) -> float:
    async with session_factory() as session:
        spot = await session.get(TouristSpot, spot_id)
        return float(spot.average_rating)


class TestAggregator:

    async def test_mean_after_several_users(self, session_factory, spot, user, other_user, admin, spot_cache):
        for rater, score in ((user, 5), (other_user, 4), (admin, 2)):
            async with session_factory() as session:
                await rating_service.upsert_rating(session, spot.id, rater, _rating(score), spot_cache)

        assert await _stored_average(session_factory, spot.id) == pytest.approx(3.67)

    async def test_second_rating_updates_instead_of_inserting(self, session_factory, spot, user, spot_cache):
        async with session_factory() as session:
            first, created = await rating_service.upsert_rating(session, spot.id, user, _rating(2), spot_cache)
        assert created is True

        async with session_factory() as session:
            second, created = await rating_service.upsert_rating(session, spot.id, user, _rating(5), spot_cache)
        assert created is False
        assert second.id == first.id
        assert second.score == 5

        async with session_factory() as session:
            ratings = await rating_service.list_for_spot(session, spot.id)
        assert len(ratings) == 1
        assert await _stored_average(session_factory, spot.id) == 5.0

    async def test_mean_returns_to_zero_after_last_delete(self, session_factory, spot, user, spot_cache):
        async with session_factory() as session:
            await rating_service.upsert_rating(session, spot.id, user, _rating(4), spot_cache)
        async with session_factory() as session:
            await rating_service.delete_rating(session, spot.id, user, spot_cache)

        average = await _stored_average(session_factory, spot.id)
        assert average == 0.0
        assert isinstance(average, float)

    async def test_recompute_with_no_ratings_is_zero(self, db_session, spot):
        assert await rating_service.recompute_average(db_session, spot.id) == 0.0

    async def test_rating_write_invalidates_cached_spot(self, session_factory, spot, user, spot_cache, fake_redis):
        fake_redis.store[spot_key(spot.id)] = '{"averageRating": 0.0}'

        async with session_factory() as session:
            await rating_service.upsert_rating(session, spot.id, user, _rating(3), spot_cache)

        assert spot_key(spot.id) not in fake_redis.store


class TestRatingErrors:

    async def test_rating_unknown_spot_is_404(self, db_session, user, spot_cache):
        import uuid

        with pytest.raises(NotFoundError):
            await rating_service.upsert_rating(db_session, uuid.uuid4(), user, _rating(3), spot_cache)

    async def test_deleting_missing_rating_is_404(self, db_session, spot, user, spot_cache):
        with pytest.raises(NotFoundError, match="Rating not found"):
            await rating_service.delete_rating(db_session, spot.id, user, spot_cache)

    async def test_user_rating_is_none_before_rating(self, db_session, spot, user):
        assert await rating_service.get_user_rating(db_session, spot.id, user) is None
