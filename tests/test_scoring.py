"""
Unit tests for points tables, team scores and the grouping helper.
"""

import pytest

from kartrank.utils.grouping import group_by
from kartrank.utils.scoring import average_position, calculate_team_scores_from_positions, position_to_points


class TestPositionPoints:

    def test_points_table(self):
        assert [position_to_points(p) for p in range(1, 13)] == [15, 12, 10, 9, 8, 7, 6, 5, 4, 3, 2, 1]

    def test_no_points_beyond_twelfth(self):
        assert position_to_points(13) == 0
        assert position_to_points(24) == 0


class TestTeamScores:

    def test_average_points_per_round(self):
        scores = calculate_team_scores_from_positions(
            [("red", 1), ("blue", 3), ("red", 2), ("blue", 4)], num_rounds=2
        )
        assert scores == {"red": 13.5, "blue": 9.5}

    def test_multiple_racers_per_team_per_round(self):
        scores = calculate_team_scores_from_positions(
            [("red", 1), ("red", 13), ("blue", 2)], num_rounds=1
        )
        assert scores == {"red": 15.0, "blue": 12.0}

    def test_invalid_round_count(self):
        with pytest.raises(ValueError):
            calculate_team_scores_from_positions([("red", 1)], num_rounds=0)

    def test_average_position(self):
        assert average_position([1, 2]) == 1.5
        assert average_position([]) is None


class TestGroupBy:

    def test_keeps_insertion_order(self):
        groups = group_by(["bb", "a", "cc", "b"], key=len)
        assert list(groups) == [2, 1]
        assert groups[2] == ["bb", "cc"]

    def test_value_mapping(self):
        groups = group_by([("x", 1), ("y", 2), ("x", 3)], key=lambda r: r[0], value=lambda r: r[1])
        assert groups == {"x": [1, 3], "y": [2]}
