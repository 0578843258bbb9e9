"""
Unit tests for team allocation.
"""

import random

import pytest

from kartrank.utils.team_allocation import (
    RatedPlayer, TeamMode, allocate_teams, calculate_team_sizes
)


def rated(*ratings):
    return [RatedPlayer(player_id=f"p{idx}", rating=rating) for idx, rating in enumerate(ratings, start=1)]


class TestTeamSizes:

    def test_even_split(self):
        assert calculate_team_sizes(4, 2) == [2, 2]

    def test_larger_teams_first(self):
        assert calculate_team_sizes(10, 3) == [4, 3, 3]
        assert calculate_team_sizes(7, 4) == [2, 2, 2, 1]

    def test_invalid_team_count(self):
        with pytest.raises(ValueError):
            calculate_team_sizes(4, 0)


class TestBalancedAllocation:

    def test_greedy_lowest_total(self):
        teams = allocate_teams(rated(1400, 1300, 1200, 1100), 2)
        assert [team.player_ids for team in teams] == [["p1", "p4"], ["p2", "p3"]]
        assert [team.total_elo for team in teams] == [2500, 2500]

    def test_ties_go_to_lowest_team_number(self):
        teams = allocate_teams(rated(1200, 1200, 1200, 1200), 2)
        assert [team.player_ids for team in teams] == [["p1", "p3"], ["p2", "p4"]]

    def test_every_player_on_exactly_one_team(self):
        players = rated(1500, 1420, 1390, 1250, 1210, 1100, 990)
        teams = allocate_teams(players, 3)
        assigned = [pid for team in teams for pid in team.player_ids]
        assert sorted(assigned) == sorted(p.player_id for p in players)
        sizes = [len(team.players) for team in teams]
        assert max(sizes) - min(sizes) <= 1
        assert sizes == sorted(sizes, reverse=True)

    def test_team_count_clamped_to_player_count(self):
        teams = allocate_teams(rated(1200, 1100, 1000), 5)
        assert len(teams) == 3
        assert all(len(team.players) == 1 for team in teams)

    def test_team_numbers_start_at_one(self):
        teams = allocate_teams(rated(1200, 1100, 1000, 900), 2)
        assert [team.team_num for team in teams] == [1, 2]


class TestRandomAllocation:

    def test_random_mode_keeps_sizes_and_players(self):
        players = rated(1500, 1400, 1300, 1200, 1100)
        teams = allocate_teams(players, 2, TeamMode.RANDOM, rng=random.Random(3))
        assert [len(team.players) for team in teams] == [3, 2]
        assert sorted(pid for team in teams for pid in team.player_ids) == sorted(p.player_id for p in players)
        for team in teams:
            assert team.total_elo == sum(p.rating for p in team.players)

    def test_random_mode_is_reproducible_with_seed(self):
        players = rated(1500, 1400, 1300, 1200, 1100, 1000)
        first = allocate_teams(players, 3, TeamMode.RANDOM, rng=random.Random(9))
        second = allocate_teams(players, 3, TeamMode.RANDOM, rng=random.Random(9))
        assert [t.player_ids for t in first] == [t.player_ids for t in second]


class TestInvalidInput:

    def test_no_players(self):
        with pytest.raises(ValueError):
            allocate_teams([], 2)

    def test_no_teams(self):
        with pytest.raises(ValueError):
            allocate_teams(rated(1200), 0)
