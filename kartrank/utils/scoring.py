"""Points and aggregate calculations shared by result recording."""

from typing import Dict, Iterable, List, Optional, Tuple

from kartrank.constants import ScoringConstants
from kartrank.utils.grouping import group_by

def position_to_points(position: int) -> int:
    """Team points for a finishing position (15 for 1st down to 1 for 12th, 0 beyond)"""
    return ScoringConstants.POSITION_POINTS.get(position, 0)

def calculate_team_scores_from_positions(
    race_scores: Iterable[Tuple[str, int]],
    num_rounds: int
) -> Dict[str, float]:
    """
    Calculate each team's average points per round.
    
    Args:
        race_scores: (team_id, position) for every race result of the match
        num_rounds: Number of rounds in the match
        
    Returns:
        Team id to average points, in first-seen team order
        
    Example:
        [(team, 1), (team, 2)] over 2 rounds -> {team: 13.5}
    """
    if num_rounds < 1:
        raise ValueError(f"Number of rounds must be positive, got {num_rounds}")
    
    team_points = group_by(
        race_scores,
        key=lambda score: score[0],
        value=lambda score: position_to_points(score[1])
    )
    return {team_id: sum(points) / num_rounds for team_id, points in team_points.items()}

def average_position(positions: List[int]) -> Optional[float]:
    """Mean finishing position, None when the player has not raced"""
    if not positions:
        return None
    return sum(positions) / len(positions)
