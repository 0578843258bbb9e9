"""
Race allocation: which player from each team races in each round.

Every round takes exactly one player per team. Players inside a team are
ranked by rating. The largest team (the primary team) simply rotates through
its roster, and every other team follows that rotation so that similarly
ranked players end up on the grid together, while keeping each player's race
count within one of their teammates'.
"""

import logging
from dataclasses import dataclass
from typing import List

from kartrank.constants import RaceAllocationConstants
from kartrank.utils.team_allocation import AllocatedTeam, RatedPlayer

logger = logging.getLogger(__name__)

@dataclass
class RaceAllocation:
    """Players racing in one round, one per team in team order"""
    race_number: int
    player_ids: List[str]

def allocate_races(teams: List[AllocatedTeam], num_races: int) -> List[RaceAllocation]:
    """
    Allocate players to races.
    
    Args:
        teams: Allocated teams
        num_races: Number of rounds in the match
        
    Returns:
        One RaceAllocation per round, numbered from 1
        
    Raises:
        ValueError: If there are no teams, a team is empty, or num_races is not positive
    """
    if not teams:
        raise ValueError("No teams available")
    if num_races < 1:
        raise ValueError(f"Number of races must be positive, got {num_races}")
    
    rosters = []
    for team in teams:
        if not team.players:
            raise ValueError(f"Team {team.team_num} has no players")
        rosters.append(sorted(team.players, key=lambda p: p.rating, reverse=True))
    
    primary_size = max(len(roster) for roster in rosters)
    primary_index = next(idx for idx, roster in enumerate(rosters) if len(roster) == primary_size)
    primary_roster = rosters[primary_index]
    
    schedules = []
    for idx, roster in enumerate(rosters):
        if idx == primary_index:
            schedules.append([race_idx % primary_size for race_idx in range(num_races)])
        elif num_races % len(roster) == 0:
            schedules.append(_proportional_schedule(len(roster), primary_size, num_races))
        else:
            schedules.append(_weighted_schedule(roster, primary_roster, num_races))
    
    allocations = []
    for race_idx in range(num_races):
        allocations.append(RaceAllocation(
            race_number=race_idx + 1,
            player_ids=[
                rosters[team_idx][schedules[team_idx][race_idx]].player_id
                for team_idx in range(len(rosters))
            ]
        ))
    
    logger.debug(f"Allocated {num_races} races across {len(teams)} teams")
    return allocations

def _proportional_schedule(team_size: int, primary_size: int, num_races: int) -> List[int]:
    """Map the primary rotation onto a team whose size divides the race count"""
    target_uses = num_races // team_size
    used_counts = [0] * team_size
    schedule = []
    
    for race_idx in range(num_races):
        primary_pos = race_idx % primary_size
        ideal_pos = (primary_pos * team_size) // primary_size
        
        if used_counts[ideal_pos] < target_uses:
            chosen_pos = ideal_pos
        else:
            candidates = [pos for pos in range(team_size) if used_counts[pos] < target_uses]
            chosen_pos = min(candidates, key=lambda pos: used_counts[pos]) if candidates else 0
        
        schedule.append(chosen_pos)
        used_counts[chosen_pos] += 1
    
    return schedule

def _weighted_schedule(roster: List[RatedPlayer], primary_roster: List[RatedPlayer],
                       num_races: int) -> List[int]:
    """Schedule a team with uneven usage by rating proximity to the primary racer"""
    team_size = len(roster)
    uses_per_position, extra_uses = divmod(num_races, team_size)
    target_uses = [
        uses_per_position + (1 if pos < extra_uses else 0)
        for pos in range(team_size)
    ]
    used_counts = [0] * team_size
    schedule = []
    
    for race_idx in range(num_races):
        primary_rating = primary_roster[race_idx % len(primary_roster)].rating
        candidates = [pos for pos in range(team_size) if used_counts[pos] < target_uses[pos]]
        
        if candidates:
            chosen_pos = min(
                candidates,
                key=lambda pos: abs(roster[pos].rating - primary_rating)
                + used_counts[pos] * RaceAllocationConstants.USAGE_PENALTY
            )
        else:
            chosen_pos = 0
        
        schedule.append(chosen_pos)
        used_counts[chosen_pos] += 1
    
    return schedule
