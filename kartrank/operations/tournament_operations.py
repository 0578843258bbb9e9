"""
Tournament completion

Closes a tournament: picks the winner by tournament rating and computes the
superlative statistics shown on the tournament summary. All of it is derived
from persisted race, contribution and match score history, and written in one
transaction guarded by a conditional update on the winner.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kartrank.database.models import (
    Match, Tournament, TournamentStat, TournamentStatType,
    PlayerTournamentScore, PlayerRaceScore, PlayerMatchScore, TeammateEloContribution
)
from kartrank.utils.exceptions import (
    KartRankError, ValidationError, ConflictError, NotFoundError, InternalError
)
from kartrank.utils.grouping import group_by
from kartrank.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class StatResult:
    """A computed statistic before it is stored"""
    player_id: str
    value: int
    extra_data: Optional[Dict[str, Any]] = None


def _first_extreme(items: Sequence[Tuple[str, int]], highest: bool) -> StatResult:
    # max()/min() return the first of equal elements, so ties go to the earliest entry
    pick = max if highest else min
    player_id, value = pick(items, key=lambda item: item[1])
    return StatResult(player_id=player_id, value=value)


def calculate_race_stats(race_rows: Sequence[Tuple[str, int, int]]) -> Dict[TournamentStatType, StatResult]:
    """
    Best race, worst race and biggest swing.

    Args:
        race_rows: (player_id, tournament_elo_change, tournament_elo_after) in play order

    Returns:
        Stats keyed by type
    """
    changes = [(player_id, change) for player_id, change, _ in race_rows]
    stats = {
        TournamentStatType.BEST_RACE: _first_extreme(changes, highest=True),
        TournamentStatType.WORST_RACE: _first_extreme(changes, highest=False),
    }

    afters = group_by(race_rows, key=lambda row: row[0], value=lambda row: row[2])
    swings = [(player_id, max(values) - min(values)) for player_id, values in afters.items()]
    swing = _first_extreme(swings, highest=True)
    swing.extra_data = {
        "high_value": max(afters[swing.player_id]),
        "low_value": min(afters[swing.player_id]),
    }
    stats[TournamentStatType.BIGGEST_SWING] = swing

    return stats


def calculate_contribution_stats(
    contribution_rows: Sequence[Tuple[str, str, int]]
) -> Dict[TournamentStatType, StatResult]:
    """
    Best/worst teammate by contribution given, most helped/hurt by contribution received.

    Args:
        contribution_rows: (source_player_id, beneficiary_player_id, contribution_amount) in play order

    Returns:
        Stats keyed by type, empty when there are no contributions
    """
    if not contribution_rows:
        return {}

    given = group_by(contribution_rows, key=lambda row: row[0], value=lambda row: row[2])
    received = group_by(contribution_rows, key=lambda row: row[1], value=lambda row: row[2])
    given_totals = [(player_id, sum(amounts)) for player_id, amounts in given.items()]
    received_totals = [(player_id, sum(amounts)) for player_id, amounts in received.items()]

    return {
        TournamentStatType.BEST_TEAMMATE: _first_extreme(given_totals, highest=True),
        TournamentStatType.WORST_TEAMMATE: _first_extreme(given_totals, highest=False),
        TournamentStatType.MOST_HELPED: _first_extreme(received_totals, highest=True),
        TournamentStatType.MOST_HURT: _first_extreme(received_totals, highest=False),
    }


def calculate_match_stats(match_rows: Sequence[Tuple[str, int]]) -> Dict[TournamentStatType, StatResult]:
    """
    Best and worst whole-match tournament Elo change.

    Args:
        match_rows: (player_id, tournament_elo_change) for players who raced, in play order
    """
    if not match_rows:
        return {}

    return {
        TournamentStatType.BEST_MATCH: _first_extreme(match_rows, highest=True),
        TournamentStatType.WORST_MATCH: _first_extreme(match_rows, highest=False),
    }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TournamentOperations:
    """Closes tournaments and records their winner and statistics"""

    def __init__(self, database, clock: Optional[Callable[[], datetime]] = None):
        self.db = database
        self.clock = clock or utc_now
        self.logger = logger

    async def complete_tournament(self, tournament_id: str, group_id: Optional[str] = None) -> Tournament:
        """
        Complete a tournament.

        Args:
            tournament_id: Tournament to close
            group_id: When given, the tournament must belong to this group

        Returns:
            Tournament: The closed tournament with winner and stats loaded

        Raises:
            NotFoundError: If the tournament does not exist
            ConflictError: If the tournament already has a winner
            ValidationError: If no race has been recorded in the tournament
            InternalError: If the database operation fails
        """
        try:
            async with self.db.transaction() as session:
                tournament = await self._complete_tournament(session, tournament_id, group_id)
        except KartRankError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to complete tournament {tournament_id}: {e}")
            raise InternalError("tournament completion", str(e)) from e

        self.logger.info(
            f"Completed tournament {tournament_id}: winner={tournament.winner_id}, "
            f"{len(tournament.stats)} stats recorded"
        )
        return tournament

    async def _complete_tournament(self, session: AsyncSession, tournament_id: str,
                                   group_id: Optional[str]) -> Tournament:
        tournament = await session.get(Tournament, tournament_id)
        if tournament is None:
            raise NotFoundError("Tournament", tournament_id)
        if group_id is not None and tournament.group_id != group_id:
            raise ValidationError(f"Tournament {tournament_id} does not belong to group {group_id}")
        if tournament.winner_id is not None:
            raise ConflictError(f"Tournament {tournament_id} is already completed",
                                "This tournament has already finished.")

        race_rows = await self._fetch_race_rows(session, tournament_id)
        if not race_rows:
            raise ValidationError(f"Tournament {tournament_id} has no race results",
                                  "A tournament needs at least one recorded race before it can finish.")

        winner_id = await self._calculate_winner(session, tournament_id)

        stats: Dict[TournamentStatType, StatResult] = {}
        stats.update(calculate_race_stats(race_rows))
        stats.update(calculate_contribution_stats(await self._fetch_contribution_rows(session, tournament_id)))
        stats.update(calculate_match_stats(await self._fetch_match_rows(session, tournament_id)))

        values = {"winner_id": winner_id}
        if tournament.end_date is None:
            values["end_date"] = self.clock().date()

        # Guards against a concurrent close between the check above and this write
        closed = await session.execute(
            update(Tournament)
            .where(Tournament.id == tournament_id, Tournament.winner_id.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if closed.rowcount == 0:
            raise ConflictError(f"Tournament {tournament_id} is already completed",
                                "This tournament has already finished.")

        for stat_type, stat in stats.items():
            session.add(TournamentStat(
                tournament_id=tournament_id,
                stat_type=stat_type,
                player_id=stat.player_id,
                value=stat.value,
                extra_data=stat.extra_data
            ))
        await session.flush()

        result = await session.execute(
            select(Tournament)
            .options(selectinload(Tournament.stats))
            .where(Tournament.id == tournament_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _calculate_winner(self, session: AsyncSession, tournament_id: str) -> str:
        result = await session.execute(
            select(PlayerTournamentScore.player_id)
            .where(PlayerTournamentScore.tournament_id == tournament_id)
            .order_by(PlayerTournamentScore.elo_rating.desc(), PlayerTournamentScore.player_id)
            .limit(1)
        )
        winner_id = result.scalar_one_or_none()
        if winner_id is None:
            raise ValidationError(f"Tournament {tournament_id} has no rated players")
        return winner_id

    async def _fetch_race_rows(self, session: AsyncSession, tournament_id: str) -> List[Tuple[str, int, int]]:
        result = await session.execute(
            select(
                PlayerRaceScore.player_id,
                PlayerRaceScore.tournament_elo_change,
                PlayerRaceScore.tournament_elo_after
            )
            .join(Match, PlayerRaceScore.match_id == Match.id)
            .where(Match.tournament_id == tournament_id)
            .order_by(Match.time, PlayerRaceScore.round_number, PlayerRaceScore.position)
        )
        return [tuple(row) for row in result.all()]

    async def _fetch_contribution_rows(self, session: AsyncSession, tournament_id: str) -> List[Tuple[str, str, int]]:
        result = await session.execute(
            select(
                TeammateEloContribution.source_player_id,
                TeammateEloContribution.beneficiary_player_id,
                TeammateEloContribution.contribution_amount
            )
            .join(Match, TeammateEloContribution.match_id == Match.id)
            .where(Match.tournament_id == tournament_id)
            .order_by(
                Match.time,
                TeammateEloContribution.round_number,
                TeammateEloContribution.source_player_id,
                TeammateEloContribution.beneficiary_player_id
            )
        )
        return [tuple(row) for row in result.all()]

    async def _fetch_match_rows(self, session: AsyncSession, tournament_id: str) -> List[Tuple[str, int]]:
        result = await session.execute(
            select(PlayerMatchScore.player_id, PlayerMatchScore.tournament_elo_change)
            .join(Match, PlayerMatchScore.match_id == Match.id)
            .where(
                Match.tournament_id == tournament_id,
                PlayerMatchScore.position.is_not(None)
            )
            .order_by(Match.time, PlayerMatchScore.position)
        )
        return [tuple(row) for row in result.all()]
