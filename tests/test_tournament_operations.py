"""
Tests for closing a tournament: winner selection and summary statistics.
"""

from datetime import date

import pytest

from kartrank.database.models import TournamentStatType
from kartrank.operations.tournament_operations import (
    calculate_contribution_stats, calculate_match_stats, calculate_race_stats
)
from kartrank.utils.exceptions import ConflictError, NotFoundError, ValidationError


RACE_STATS = {TournamentStatType.BEST_RACE, TournamentStatType.WORST_RACE, TournamentStatType.BIGGEST_SWING}
MATCH_STATS = {TournamentStatType.BEST_MATCH, TournamentStatType.WORST_MATCH}
CONTRIBUTION_STATS = {
    TournamentStatType.BEST_TEAMMATE, TournamentStatType.WORST_TEAMMATE,
    TournamentStatType.MOST_HELPED, TournamentStatType.MOST_HURT,
}


async def play_solo_match(match_ops, group, tournament, player_ids):
    """Four single-player teams over two rounds"""
    alice, bob, carol, dave = player_ids
    match = await match_ops.create_match(group.id, tournament.id, player_ids, 2, 4)
    await match_ops.record_round_results(match.id, 1, [(alice, 1), (bob, 2), (carol, 3), (dave, 4)])
    await match_ops.record_round_results(match.id, 2, [(bob, 1), (alice, 2), (dave, 3), (carol, 4)])
    return match


async def play_team_match(match_ops, group, tournament, player_ids):
    """Two teams of two over two rounds"""
    match = await match_ops.create_match(group.id, tournament.id, player_ids, 2, 2)
    for round_record in match.round_records:
        racers = [rp.player_id for rp in round_record.players]
        await match_ops.record_round_results(match.id, round_record.round_number,
                                             list(zip(racers, (2, 6))))
    return match


@pytest.fixture
def player_ids(players):
    return [player.id for player in players]


class TestStatCalculations:

    def test_race_stats(self):
        rows = [("a", 12, 1212), ("b", -5, 1195), ("a", -20, 1192), ("b", 12, 1207)]
        stats = calculate_race_stats(rows)
        assert stats[TournamentStatType.BEST_RACE].player_id == "a"
        assert stats[TournamentStatType.BEST_RACE].value == 12
        assert stats[TournamentStatType.WORST_RACE].value == -20

        swing = stats[TournamentStatType.BIGGEST_SWING]
        assert (swing.player_id, swing.value) == ("a", 20)
        assert swing.extra_data == {"high_value": 1212, "low_value": 1192}

    def test_ties_go_to_first_in_play_order(self):
        stats = calculate_race_stats([("b", 7, 1207), ("a", 7, 1207)])
        assert stats[TournamentStatType.BEST_RACE].player_id == "b"
        assert stats[TournamentStatType.WORST_RACE].player_id == "b"

    def test_contribution_stats(self):
        rows = [("a", "b", 3), ("b", "a", -2), ("a", "b", 4), ("c", "a", 1)]
        stats = calculate_contribution_stats(rows)
        assert (stats[TournamentStatType.BEST_TEAMMATE].player_id, stats[TournamentStatType.BEST_TEAMMATE].value) == ("a", 7)
        assert (stats[TournamentStatType.WORST_TEAMMATE].player_id, stats[TournamentStatType.WORST_TEAMMATE].value) == ("b", -2)
        assert (stats[TournamentStatType.MOST_HELPED].player_id, stats[TournamentStatType.MOST_HELPED].value) == ("b", 7)
        assert (stats[TournamentStatType.MOST_HURT].player_id, stats[TournamentStatType.MOST_HURT].value) == ("a", -1)

    def test_no_contributions_means_no_stats(self):
        assert calculate_contribution_stats([]) == {}

    def test_match_stats(self):
        stats = calculate_match_stats([("a", 14), ("b", -9), ("c", 3)])
        assert stats[TournamentStatType.BEST_MATCH].player_id == "a"
        assert stats[TournamentStatType.WORST_MATCH].player_id == "b"


class TestCompleteTournament:

    async def test_winner_is_highest_tournament_rating(self, db, match_ops, tournament_ops, group, tournament, player_ids):
        await play_solo_match(match_ops, group, tournament, player_ids)

        closed = await tournament_ops.complete_tournament(tournament.id)

        leaderboard = await db.get_tournament_leaderboard(tournament.id)
        top_rating = leaderboard[0].elo_rating
        expected_winner = min(s.player_id for s in leaderboard if s.elo_rating == top_rating)
        assert closed.winner_id == expected_winner
        assert closed.is_completed

    async def test_stats_without_teammates(self, match_ops, tournament_ops, group, tournament, player_ids):
        await play_solo_match(match_ops, group, tournament, player_ids)

        closed = await tournament_ops.complete_tournament(tournament.id)

        stat_types = {stat.stat_type for stat in closed.stats}
        assert stat_types == RACE_STATS | MATCH_STATS
        swing = next(s for s in closed.stats if s.stat_type == TournamentStatType.BIGGEST_SWING)
        assert swing.value == swing.extra_data["high_value"] - swing.extra_data["low_value"]

    async def test_stats_with_teammates(self, match_ops, tournament_ops, group, tournament, player_ids):
        await play_team_match(match_ops, group, tournament, player_ids)

        closed = await tournament_ops.complete_tournament(tournament.id)

        assert {stat.stat_type for stat in closed.stats} == RACE_STATS | MATCH_STATS | CONTRIBUTION_STATS

    async def test_best_race_matches_history(self, db, match_ops, tournament_ops, group, tournament, player_ids):
        await play_solo_match(match_ops, group, tournament, player_ids)
        closed = await tournament_ops.complete_tournament(tournament.id)

        best = next(s for s in closed.stats if s.stat_type == TournamentStatType.BEST_RACE)
        worst = next(s for s in closed.stats if s.stat_type == TournamentStatType.WORST_RACE)
        assert best.value >= worst.value
        assert best.player_id in player_ids

    async def test_end_date_filled_from_clock(self, match_ops, tournament_ops, group, tournament, player_ids, clock):
        await play_solo_match(match_ops, group, tournament, player_ids)
        closed = await tournament_ops.complete_tournament(tournament.id)
        assert closed.end_date == clock.current.date()

    async def test_existing_end_date_kept(self, db, match_ops, tournament_ops, group, player_ids):
        tournament = await db.create_tournament(group.id, start_date=date(2026, 2, 1), end_date=date(2026, 2, 28))
        await play_solo_match(match_ops, group, tournament, player_ids)
        closed = await tournament_ops.complete_tournament(tournament.id)
        assert closed.end_date == date(2026, 2, 28)

    async def test_second_completion_rejected(self, db, match_ops, tournament_ops, group, tournament, player_ids):
        await play_solo_match(match_ops, group, tournament, player_ids)
        closed = await tournament_ops.complete_tournament(tournament.id)

        with pytest.raises(ConflictError):
            await tournament_ops.complete_tournament(tournament.id)

        reloaded = await db.get_tournament(tournament.id)
        assert reloaded.winner_id == closed.winner_id
        assert len(reloaded.stats) == len(closed.stats)

    async def test_closed_tournament_rejects_new_matches(self, match_ops, tournament_ops, group, tournament, player_ids):
        await play_solo_match(match_ops, group, tournament, player_ids)
        await tournament_ops.complete_tournament(tournament.id)
        with pytest.raises(ConflictError):
            await match_ops.create_match(group.id, tournament.id, player_ids, 2, 2)

    async def test_no_races_rejected(self, match_ops, tournament_ops, group, tournament, player_ids):
        await match_ops.create_match(group.id, tournament.id, player_ids, 2, 2)
        with pytest.raises(ValidationError):
            await tournament_ops.complete_tournament(tournament.id)

    async def test_wrong_group_rejected(self, db, match_ops, tournament_ops, group, tournament, player_ids):
        await play_solo_match(match_ops, group, tournament, player_ids)
        other_group = await db.create_group("Sunday League")
        with pytest.raises(ValidationError):
            await tournament_ops.complete_tournament(tournament.id, group_id=other_group.id)

    async def test_unknown_tournament(self, tournament_ops):
        with pytest.raises(NotFoundError):
            await tournament_ops.complete_tournament("missing")
