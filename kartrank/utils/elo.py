"""
Elo rating calculations for 24-racer Mario Kart races.

A race is always rated as a full grid. Human results are placed into a
synthetic field where every empty position is taken by a CPU whose rating
falls with its position, so a race with two humans is scored the same way as
one with twelve. The same calculator serves both rating ladders; callers pass
all-time or tournament ratings and the two never share state.
"""

import math
from dataclasses import dataclass
from typing import List, Optional

from kartrank.config import Config
from kartrank.constants import EloConstants

@dataclass(frozen=True)
class RacePlayerResult:
    """A racer's finishing position and rating going into the race"""
    player_id: Optional[str]  # None for CPU entries
    position: int
    current_elo: int
    
    @property
    def is_cpu(self) -> bool:
        return self.player_id is None

@dataclass(frozen=True)
class EloChange:
    """Rating change for one human racer"""
    player_id: str
    elo_change: int
    new_elo: int

class EloCalculator:
    """Handles Elo rating calculations for races against a synthetic field"""
    
    @staticmethod
    def calculate_expected_score(rating_a: int, rating_b: int) -> float:
        """
        Calculate the expected score for player A against player B
        
        Args:
            rating_a: Player A's current Elo rating
            rating_b: Player B's current Elo rating
            
        Returns:
            Expected score (0.0 to 1.0) for player A
        """
        return 1 / (1 + math.pow(10, (rating_b - rating_a) / EloConstants.RATING_SCALE))
    
    @staticmethod
    def cpu_elo_for_position(position: int) -> int:
        """Rating of the CPU occupying a given finishing position"""
        return max(
            EloConstants.CPU_MIN_ELO,
            EloConstants.CPU_MAX_ELO - (position - 1) * EloConstants.CPU_ELO_STEP
        )
    
    @staticmethod
    def create_full_field(human_results: List[RacePlayerResult]) -> List[RacePlayerResult]:
        """
        Build the full race field by filling empty positions with CPUs
        
        Args:
            human_results: Results of the human racers
            
        Returns:
            Exactly RACE_SIZE entries, humans first, then CPUs by position
        """
        full_field = list(human_results)
        human_positions = {result.position for result in human_results}
        
        for position in range(1, EloConstants.RACE_SIZE + 1):
            if position not in human_positions:
                full_field.append(RacePlayerResult(
                    player_id=None,
                    position=position,
                    current_elo=EloCalculator.cpu_elo_for_position(position)
                ))
        
        return full_field
    
    @staticmethod
    def position_to_score(position: int) -> float:
        """
        Convert a finishing position into a normalized actual score
        
        Args:
            position: Finishing position (1 to RACE_SIZE)
            
        Returns:
            1.0 for first place down to 0.0 for last place
        """
        return (EloConstants.RACE_SIZE - position) / (EloConstants.RACE_SIZE - 1)
    
    @staticmethod
    def calculate_field_expected_score(player: RacePlayerResult,
                                       full_field: List[RacePlayerResult]) -> float:
        """Mean expected score of a racer against every other entry in the field"""
        opponents = [entry for entry in full_field if entry is not player]
        if not opponents:
            return 0.5
        
        total = sum(
            EloCalculator.calculate_expected_score(player.current_elo, opponent.current_elo)
            for opponent in opponents
        )
        return total / len(opponents)
    
    @staticmethod
    def calculate_race_elo_changes(results: List[RacePlayerResult],
                                   k_factor: float = None) -> List[EloChange]:
        """
        Calculate Elo changes for every human racer in a single race
        
        Args:
            results: Human results for the race, positions unique within 1..RACE_SIZE
            k_factor: Override for Config.RACE_K_FACTOR
            
        Returns:
            One EloChange per human racer, in input order
        """
        k = Config.RACE_K_FACTOR if k_factor is None else k_factor
        full_field = EloCalculator.create_full_field(results)
        
        changes = []
        for player in results:
            expected_score = EloCalculator.calculate_field_expected_score(player, full_field)
            actual_score = EloCalculator.position_to_score(player.position)
            elo_change = round(k * (actual_score - expected_score))
            changes.append(EloChange(
                player_id=player.player_id,
                elo_change=elo_change,
                new_elo=player.current_elo + elo_change
            ))
        
        return changes
    
    @staticmethod
    def format_elo_change(elo_change: int) -> str:
        """
        Format Elo change for display
        
        Args:
            elo_change: The Elo change value
            
        Returns:
            Formatted string with an explicit sign
        """
        if elo_change > 0:
            return f"+{elo_change}"
        elif elo_change < 0:
            return str(elo_change)
        else:
            return "±0"
