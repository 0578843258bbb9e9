"""
Tests for shuffle-bag track selection against persisted match history.
"""

import random

import pytest

from kartrank.constants import TrackConstants
from kartrank.operations.track_selection import TrackSelector
from kartrank.utils.exceptions import ValidationError

CATALOG_SIZE = len(TrackConstants.DEFAULT_TRACKS)


async def play_match(match_ops, group, tournament, player, rounds):
    match = await match_ops.create_match(group.id, tournament.id, [player.id], rounds, 1)
    return [r.track_id for r in match.round_records]


class TestTrackSelector:

    async def test_catalog_is_seeded(self, db):
        tracks = await db.get_all_tracks()
        assert len(tracks) == CATALOG_SIZE

    async def test_selects_distinct_tracks(self, db, tournament):
        selector = TrackSelector(random.Random(1))
        async with db.transaction() as session:
            tracks = await selector.select_tracks(session, tournament.id, 12)
        assert len(tracks) == 12
        assert len({track.id for track in tracks}) == 12

    async def test_full_cycle_has_no_repeats(self, match_ops, group, tournament, players):
        played = []
        for _ in range(3):
            played += await play_match(match_ops, group, tournament, players[0], CATALOG_SIZE // 3)
        assert len(played) == CATALOG_SIZE
        assert len(set(played)) == CATALOG_SIZE

    async def test_draw_straddling_cycle_boundary(self, match_ops, group, tournament, players):
        first = await play_match(match_ops, group, tournament, players[0], 12)
        second = await play_match(match_ops, group, tournament, players[0], 12)
        assert len(set(first + second)) == 24

        third = await play_match(match_ops, group, tournament, players[0], 12)
        assert len(third) == 12
        assert len(set(third)) == 12

        all_ids = {track.id for track in await match_ops.db.get_all_tracks()}
        leftover = all_ids - set(first) - set(second)
        assert leftover <= set(third)

    async def test_history_is_per_tournament(self, db, match_ops, group, tournament, players):
        await play_match(match_ops, group, tournament, players[0], CATALOG_SIZE - 1)
        other = await db.create_tournament(group.id)
        tracks = await play_match(match_ops, group, other, players[0], CATALOG_SIZE)
        assert len(set(tracks)) == CATALOG_SIZE

    async def test_more_rounds_than_tracks(self, db, tournament):
        selector = TrackSelector()
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await selector.select_tracks(session, tournament.id, CATALOG_SIZE + 1)
