"""
Teammate Elo contributions.

When a player races, every other member of their team receives a share of
that player's tournament Elo change for the round, whether or not the
teammate raced themselves. A bad race therefore costs the whole team.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from kartrank.config import Config

@dataclass(frozen=True)
class TeammateContribution:
    """One source player's contribution to one teammate for a round"""
    source_player_id: str
    beneficiary_player_id: str
    source_tournament_elo_change: int
    contribution_amount: int

def calculate_teammate_contributions(
    results: Iterable[Tuple[str, int]],
    player_to_team: Dict[str, str],
    team_to_players: Dict[str, List[str]],
    tournament_elo_changes: Dict[str, int],
    rate: float = None
) -> Tuple[List[TeammateContribution], Dict[str, int]]:
    """
    Calculate teammate contributions for a race.
    
    Args:
        results: (player_id, position) pairs of the racers
        player_to_team: Player id to team id for the whole match roster
        team_to_players: Team id to its player ids
        tournament_elo_changes: Racer id to their tournament Elo change this round
        rate: Share passed to each teammate, defaults to Config.TEAMMATE_CONTRIBUTION_RATE
        
    Returns:
        Tuple of the contribution records and the summed adjustment per beneficiary
    """
    share = Config.TEAMMATE_CONTRIBUTION_RATE if rate is None else rate
    contributions: List[TeammateContribution] = []
    adjustments: Dict[str, int] = {}
    
    for source_player_id, _position in results:
        team_id = player_to_team.get(source_player_id)
        if team_id is None or source_player_id not in tournament_elo_changes:
            continue
        
        elo_change = tournament_elo_changes[source_player_id]
        amount = round(elo_change * share)
        
        for teammate_id in team_to_players.get(team_id, []):
            if teammate_id == source_player_id:
                continue
            contributions.append(TeammateContribution(
                source_player_id=source_player_id,
                beneficiary_player_id=teammate_id,
                source_tournament_elo_change=elo_change,
                contribution_amount=amount
            ))
            adjustments[teammate_id] = adjustments.get(teammate_id, 0) + amount
    
    return contributions, adjustments
