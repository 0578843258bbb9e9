"""
Unit tests for race lineup scheduling.
"""

from collections import Counter

import pytest

from kartrank.utils.race_allocation import allocate_races
from kartrank.utils.team_allocation import AllocatedTeam, RatedPlayer


def team(team_num, *players):
    members = [RatedPlayer(player_id=pid, rating=rating) for pid, rating in players]
    return AllocatedTeam(team_num=team_num, players=members, total_elo=sum(r for _, r in players))


def assert_fair_schedule(teams, allocations, num_races):
    assert len(allocations) == num_races
    assert [a.race_number for a in allocations] == list(range(1, num_races + 1))
    for allocation in allocations:
        assert len(allocation.player_ids) == len(teams)
        for pid, t in zip(allocation.player_ids, teams):
            assert pid in t.player_ids
    for t in teams:
        usage = Counter(pid for a in allocations for pid in a.player_ids if pid in t.player_ids)
        counts = [usage.get(pid, 0) for pid in t.player_ids]
        assert max(counts) - min(counts) <= 1


class TestAllocateRaces:

    def test_two_v_two_pairs_by_rank(self):
        teams = [team(1, ("a", 1400), ("d", 1100)), team(2, ("b", 1300), ("c", 1200))]
        allocations = allocate_races(teams, 2)
        assert [a.player_ids for a in allocations] == [["a", "b"], ["d", "c"]]

    def test_players_sorted_by_rating_within_team(self):
        teams = [team(1, ("low", 1000), ("high", 1500)), team(2, ("x", 1200), ("y", 1250))]
        allocations = allocate_races(teams, 2)
        assert allocations[0].player_ids == ["high", "y"]

    def test_primary_team_rotates(self):
        teams = [team(1, ("a", 1500), ("b", 1400), ("c", 1300)), team(2, ("d", 1450), ("e", 1350))]
        allocations = allocate_races(teams, 6)
        assert [a.player_ids[0] for a in allocations] == ["a", "b", "c", "a", "b", "c"]
        assert_fair_schedule(teams, allocations, 6)

    def test_uneven_teams_with_remainder(self):
        teams = [
            team(1, ("a", 1500), ("b", 1400), ("c", 1300), ("d", 1200)),
            team(2, ("e", 1480), ("f", 1380), ("g", 1280)),
            team(3, ("h", 1420), ("i", 1320), ("j", 1220)),
        ]
        assert_fair_schedule(teams, allocate_races(teams, 7), 7)

    def test_proportional_mapping_for_divisible_rounds(self):
        teams = [team(1, ("a", 1500), ("b", 1400), ("c", 1300)), team(2, ("d", 1450), ("e", 1350))]
        allocations = allocate_races(teams, 4)
        assert [a.player_ids[1] for a in allocations] == ["d", "d", "e", "e"]

    def test_single_team(self):
        teams = [team(1, ("a", 1300), ("b", 1200))]
        allocations = allocate_races(teams, 3)
        assert [a.player_ids for a in allocations] == [["a"], ["b"], ["a"]]

    @pytest.mark.parametrize("num_races", [1, 2, 5, 9, 12])
    def test_fairness_across_round_counts(self, num_races):
        teams = [
            team(1, ("a", 1600), ("b", 1300), ("c", 1000)),
            team(2, ("d", 1550), ("e", 1250), ("f", 950)),
            team(3, ("g", 1500), ("h", 1200)),
        ]
        assert_fair_schedule(teams, allocate_races(teams, num_races), num_races)


class TestInvalidInput:

    def test_no_teams(self):
        with pytest.raises(ValueError):
            allocate_races([], 3)

    def test_empty_team(self):
        with pytest.raises(ValueError):
            allocate_races([team(1, ("a", 1200)), AllocatedTeam(team_num=2)], 2)

    def test_no_races(self):
        with pytest.raises(ValueError):
            allocate_races([team(1, ("a", 1200))], 0)
