"""
Team allocation for matches.

Splits the match's players into teams whose sizes differ by at most one, with
larger teams first. The default balanced mode drafts players from highest to
lowest rating, always onto the weakest team that still has room. Random mode
shuffles and slices into the same sizes.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)

class TeamMode(Enum):
    """How players are split into teams"""
    BALANCED = "balanced"
    RANDOM = "random"

@dataclass
class RatedPlayer:
    """A player together with the rating used for allocation"""
    player_id: str
    rating: int

@dataclass
class AllocatedTeam:
    """A team produced by the allocator, players in draft order"""
    team_num: int
    players: List[RatedPlayer] = field(default_factory=list)
    total_elo: int = 0
    
    @property
    def player_ids(self) -> List[str]:
        return [player.player_id for player in self.players]

def calculate_team_sizes(num_players: int, num_teams: int) -> List[int]:
    """
    Calculate how many players go on each team.
    
    Args:
        num_players: Total number of players to distribute
        num_teams: Number of teams to create
        
    Returns:
        Team sizes, the first `num_players % num_teams` teams one larger
        
    Example:
        calculate_team_sizes(10, 3) -> [4, 3, 3]
    """
    if num_teams < 1:
        raise ValueError(f"Team count must be positive, got {num_teams}")
    
    base_size, remainder = divmod(num_players, num_teams)
    return [base_size + 1 if idx < remainder else base_size for idx in range(num_teams)]

def allocate_teams(
    players: List[RatedPlayer],
    team_count: int,
    mode: TeamMode = TeamMode.BALANCED,
    rng: Optional[random.Random] = None
) -> List[AllocatedTeam]:
    """
    Allocate players to teams.
    
    Args:
        players: Players with the ratings to balance on
        team_count: Desired number of teams, capped at the number of players
        mode: Balanced greedy draft or uniform random split
        rng: Random source for RANDOM mode
        
    Returns:
        Teams numbered from 1
        
    Raises:
        ValueError: If there are no players or team_count is not positive
    """
    if not players:
        raise ValueError("Cannot allocate teams without players")
    if team_count < 1:
        raise ValueError(f"Team count must be positive, got {team_count}")
    
    num_teams = min(team_count, len(players))
    team_sizes = calculate_team_sizes(len(players), num_teams)
    
    if mode == TeamMode.RANDOM:
        teams = _allocate_randomly(players, team_sizes, rng or random)
    else:
        teams = _allocate_balanced(players, team_sizes)
    
    logger.debug(
        f"Allocated {len(players)} players into {num_teams} teams ({mode.value}): "
        f"{[team.total_elo for team in teams]}"
    )
    
    return teams

def _allocate_balanced(players: List[RatedPlayer], team_sizes: List[int]) -> List[AllocatedTeam]:
    teams = [AllocatedTeam(team_num=idx + 1) for idx in range(len(team_sizes))]
    
    # sorted() is stable, equal ratings keep their submitted order
    for player in sorted(players, key=lambda p: p.rating, reverse=True):
        open_teams = [
            team for idx, team in enumerate(teams)
            if len(team.players) < team_sizes[idx]
        ]
        target = min(open_teams, key=lambda team: team.total_elo)
        target.players.append(player)
        target.total_elo += player.rating
    
    return teams

def _allocate_randomly(players: List[RatedPlayer], team_sizes: List[int], rng) -> List[AllocatedTeam]:
    shuffled = list(players)
    rng.shuffle(shuffled)
    
    teams = []
    offset = 0
    for idx, size in enumerate(team_sizes):
        team_players = shuffled[offset:offset + size]
        offset += size
        teams.append(AllocatedTeam(
            team_num=idx + 1,
            players=team_players,
            total_elo=sum(player.rating for player in team_players)
        ))
    
    return teams
