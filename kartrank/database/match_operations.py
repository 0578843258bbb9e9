"""
Match Operations Module

Orchestrates the lifecycle of a match: creating it (teams, tracks and race
lineups in one transaction), recording each round's finishing positions
against both rating ladders, and the small set of corrections allowed before a
round is scored.

State machine:
- Round: scheduled -> scored (one-way, claimed with a conditional UPDATE)
- Match: open -> completed (one-way, flipped when the last round is scored)

Every write for a call happens inside a single Database.transaction(); a
failure leaves match, round and rating state exactly as it was. Notifications
are only sent after the transaction has committed.
"""

import random
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from sqlalchemy import select, update, delete as sql_delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kartrank.constants import ScoringConstants
from kartrank.database.models import (
    Match, Team, TeamPlayer, Round, RoundPlayer, Tournament,
    PlayerTournamentScore, PlayerRaceScore, PlayerMatchScore, TeamMatchScore,
    TeammateEloContribution, new_id
)
from kartrank.operations.track_selection import TrackSelector
from kartrank.services.notification_service import NotificationService, RaceResultNotification
from kartrank.utils.elo import EloCalculator, RacePlayerResult
from kartrank.utils.exceptions import (
    KartRankError, ValidationError, ConflictError, NotFoundError, InternalError
)
from kartrank.utils.grouping import group_by
from kartrank.utils.logger import setup_logger
from kartrank.utils.race_allocation import allocate_races
from kartrank.utils.scoring import average_position, calculate_team_scores_from_positions
from kartrank.utils.team_allocation import RatedPlayer, TeamMode, allocate_teams
from kartrank.utils.teammate_elo import calculate_teammate_contributions

logger = setup_logger(__name__)

ResultInput = Union[Tuple[str, int], Dict[str, Any]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MatchOperations:
    """
    Core service class for match creation and result recording.

    Collaborators are injected so callers and tests can control time,
    randomness and notification delivery.
    """

    def __init__(
        self,
        database,
        notifications: Optional[NotificationService] = None,
        track_selector: Optional[TrackSelector] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize with database instance and optional collaborators.

        Args:
            database: Database providing sessions and read helpers
            notifications: Receives a RaceResultNotification after each commit
            track_selector: Track source for new matches
            clock: Returns the creation timestamp of new matches
            rng: Random source for team and track shuffling
        """
        self.db = database
        self.notifications = notifications
        self.rng = rng or random
        self.track_selector = track_selector or TrackSelector(self.rng)
        self.clock = clock or utc_now
        self.logger = logger

    # ============================================================================
    # Validation
    # ============================================================================

    @staticmethod
    def validate_create_match_inputs(player_ids: List[str], round_count: int, team_count: int) -> None:
        """
        Validate match configuration before touching the database.

        Every player needs at least one race, so the number of race slots
        (one per team per round) must cover the player count.

        Raises:
            ValidationError: If the configuration is impossible
        """
        if not player_ids:
            raise ValidationError("At least one player is required", "Add at least one player to the match.")

        if len(set(player_ids)) != len(player_ids):
            raise ValidationError("Duplicate players not allowed", "Each player can only be added once.")

        if round_count <= 0:
            raise ValidationError(f"Round count must be positive, got {round_count}",
                                  "A match needs at least one round.")

        if team_count <= 0:
            raise ValidationError(f"Team count must be positive, got {team_count}",
                                  "A match needs at least one team.")

        if team_count > len(player_ids):
            raise ValidationError(
                f"Cannot split {len(player_ids)} players into {team_count} teams",
                "There are more teams than players."
            )

        if round_count * team_count < len(player_ids):
            raise ValidationError(
                f"{round_count} rounds x {team_count} teams gives {round_count * team_count} race slots "
                f"for {len(player_ids)} players",
                "Not every player would get to race. Add rounds or teams."
            )

    @staticmethod
    def validate_results(results: List[ResultInput]) -> List[Tuple[str, int]]:
        """
        Validate and normalize submitted race results.

        Args:
            results: (player_id, position) pairs or dicts with those keys

        Returns:
            List of (player_id, position) tuples in submitted order

        Raises:
            ValidationError: If the results are empty, malformed, out of range or duplicated
        """
        if not results:
            raise ValidationError("Results list cannot be empty", "Submit at least one result.")

        normalized = []
        for i, result in enumerate(results):
            if isinstance(result, dict):
                if 'player_id' not in result:
                    raise ValidationError(f"Missing 'player_id' in result at index {i}")
                if 'position' not in result:
                    raise ValidationError(f"Missing 'position' in result at index {i}")
                player_id, position = result['player_id'], result['position']
            else:
                try:
                    player_id, position = result
                except (TypeError, ValueError):
                    raise ValidationError(f"Result at index {i} must be a (player_id, position) pair")

            if isinstance(position, bool) or not isinstance(position, int):
                raise ValidationError(f"position must be an integer at index {i}")

            if not ScoringConstants.MIN_POSITION <= position <= ScoringConstants.MAX_POSITION:
                raise ValidationError(
                    f"Position {position} out of range at index {i}",
                    f"Positions must be between {ScoringConstants.MIN_POSITION} and {ScoringConstants.MAX_POSITION}."
                )

            normalized.append((player_id, position))

        positions = [position for _, position in normalized]
        if len(set(positions)) != len(positions):
            raise ValidationError("Duplicate positions in results", "Two players cannot finish in the same position.")

        player_ids = [player_id for player_id, _ in normalized]
        if len(set(player_ids)) != len(player_ids):
            raise ValidationError("Duplicate players in results", "Each player can only have one result.")

        return normalized

    # ============================================================================
    # Match creation
    # ============================================================================

    async def create_match(
        self,
        group_id: str,
        tournament_id: str,
        player_ids: List[str],
        round_count: int,
        team_count: int,
        mode: Union[TeamMode, str] = TeamMode.BALANCED
    ) -> Match:
        """
        Create a match with teams, tracks and race lineups.

        Args:
            group_id: Owning group
            tournament_id: Tournament the match belongs to
            player_ids: Players taking part
            round_count: Number of rounds (one track each)
            team_count: Number of teams to split the players into
            mode: BALANCED or RANDOM team allocation

        Returns:
            Match: The created match with teams and rounds loaded

        Raises:
            ValidationError: If the configuration is impossible
            NotFoundError: If the tournament or a player does not exist
            ConflictError: If the tournament is already closed
            InternalError: If the database operation fails
        """
        self.validate_create_match_inputs(player_ids, round_count, team_count)
        try:
            mode = TeamMode(mode)
        except ValueError:
            raise ValidationError(f"Unknown team mode: {mode}")

        try:
            async with self.db.transaction() as session:
                match = await self._create_match(
                    session, group_id, tournament_id, player_ids, round_count, team_count, mode
                )
        except KartRankError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to create match in tournament {tournament_id}: {e}")
            raise InternalError("match creation", str(e)) from e

        self.logger.info(
            f"Created match {match.id}: {len(player_ids)} players, {team_count} teams, "
            f"{round_count} rounds ({mode.value})"
        )
        self._notify(match.id, tournament_id, 0, group_id)
        return match

    async def _create_match(
        self,
        session: AsyncSession,
        group_id: str,
        tournament_id: str,
        player_ids: List[str],
        round_count: int,
        team_count: int,
        mode: TeamMode
    ) -> Match:
        tournament = await session.get(Tournament, tournament_id)
        if tournament is None:
            raise NotFoundError("Tournament", tournament_id)
        if tournament.winner_id is not None:
            raise ConflictError(f"Tournament {tournament_id} is already completed",
                                "This tournament has already finished.")
        if tournament.group_id != group_id:
            raise ValidationError(f"Tournament {tournament_id} does not belong to group {group_id}")

        players = await self.db.get_players(player_ids, session)
        missing = [pid for pid in player_ids if pid not in players or players[pid].group_id != group_id]
        if missing:
            raise NotFoundError("Players", ", ".join(missing))

        # Existing tournament ratings win over all-time ratings, nothing is created here
        result = await session.execute(
            select(PlayerTournamentScore).where(
                PlayerTournamentScore.tournament_id == tournament_id,
                PlayerTournamentScore.player_id.in_(player_ids)
            )
        )
        tournament_ratings = {score.player_id: score.elo_rating for score in result.scalars().all()}

        rated_players = [
            RatedPlayer(player_id=pid, rating=tournament_ratings.get(pid, players[pid].elo_rating))
            for pid in player_ids
        ]

        allocated_teams = allocate_teams(rated_players, team_count, mode, rng=self.rng)
        tracks = await self.track_selector.select_tracks(session, tournament_id, round_count)
        lineups = allocate_races(allocated_teams, round_count)

        match = Match(
            id=new_id(),
            group_id=group_id,
            tournament_id=tournament_id,
            time=self.clock(),
            rounds=round_count,
            team_mode=mode,
            completed=False
        )
        session.add(match)
        await session.flush()

        team_ids: Dict[int, str] = {}
        player_teams: Dict[str, Tuple[str, int]] = {}
        for allocated in allocated_teams:
            team = Team(id=new_id(), group_id=group_id, match_id=match.id, team_num=allocated.team_num)
            session.add(team)
            team_ids[allocated.team_num] = team.id
            player_teams.update({pid: (team.id, allocated.team_num) for pid in allocated.player_ids})
        await session.flush()

        for allocated in allocated_teams:
            team_id = team_ids[allocated.team_num]
            for rank, player in enumerate(allocated.players, start=1):
                session.add(TeamPlayer(team_id=team_id, player_id=player.player_id,
                                       group_id=group_id, rank=rank))
                session.add(PlayerMatchScore(match_id=match.id, player_id=player.player_id,
                                             group_id=group_id))

        for lineup, track in zip(lineups, tracks):
            session.add(Round(match_id=match.id, round_number=lineup.race_number,
                              track_id=track.id, completed=False))
        await session.flush()

        for lineup in lineups:
            for pid in lineup.player_ids:
                team_id, team_num = player_teams[pid]
                session.add(RoundPlayer(
                    match_id=match.id,
                    round_number=lineup.race_number,
                    player_id=pid,
                    group_id=group_id,
                    team_id=team_id,
                    player_position=team_num
                ))
        await session.flush()

        return await self._load_match(session, match.id)

    # ============================================================================
    # Result recording
    # ============================================================================

    async def record_round_results(
        self,
        match_id: str,
        round_number: int,
        results: List[ResultInput]
    ) -> Match:
        """
        Record finishing positions for one round and apply every rating change.

        Args:
            match_id: Match being scored
            round_number: Round within the match (1-indexed)
            results: (player_id, position) for every scheduled racer of the round

        Returns:
            Match: The match, completed=True if this was its last round

        Raises:
            ValidationError: If the results are invalid or don't match the round's lineup
            NotFoundError: If the match or round does not exist
            ConflictError: If the match is completed or the round already scored
            InternalError: If the database operation fails
        """
        race_results = self.validate_results(results)

        try:
            async with self.db.transaction() as session:
                match = await self._record_round(session, match_id, round_number, race_results)
        except KartRankError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to record round {round_number} of match {match_id}: {e}")
            raise InternalError("result recording", str(e)) from e

        self.logger.info(
            f"Recorded round {round_number} of match {match_id} with {len(race_results)} racers"
            f"{' - match completed' if match.completed else ''}"
        )
        self._notify(match.id, match.tournament_id, round_number, match.group_id)
        return match

    async def _record_round(
        self,
        session: AsyncSession,
        match_id: str,
        round_number: int,
        race_results: List[Tuple[str, int]]
    ) -> Match:
        result = await session.execute(
            select(Match).where(Match.id == match_id).with_for_update()
        )
        match = result.scalar_one_or_none()
        if match is None:
            raise NotFoundError("Match", match_id)
        if match.completed:
            raise ConflictError(f"Match {match_id} is already completed", "This match has already finished.")

        round_record = await self.db.get_round(match_id, round_number, session=session)
        if round_record is None:
            raise NotFoundError("Round", f"{round_number} of match {match_id}")
        if round_record.completed:
            raise ConflictError(f"Round {round_number} of match {match_id} is already scored",
                                "Results for this round have already been recorded.")

        scheduled_ids = await self.db.get_round_player_ids(match_id, round_number, session)
        submitted_ids = [player_id for player_id, _ in race_results]
        if set(submitted_ids) != set(scheduled_ids):
            missing = sorted(set(scheduled_ids) - set(submitted_ids))
            extra = sorted(set(submitted_ids) - set(scheduled_ids))
            raise ValidationError(
                f"Submitted players do not match round {round_number} lineup "
                f"(missing={missing}, unexpected={extra})",
                "Results must include exactly the players racing this round."
            )

        # Claim the round; a concurrent submission that got here first leaves nothing to update
        claim = await session.execute(
            update(Round)
            .where(
                Round.match_id == match_id,
                Round.round_number == round_number,
                Round.completed.is_(False)
            )
            .values(completed=True)
            .execution_options(synchronize_session=False)
        )
        if claim.rowcount == 0:
            raise ConflictError(f"Round {round_number} of match {match_id} is already scored",
                                "Results for this round have already been recorded.")

        players = await self.db.get_players(submitted_ids, session, lock=True)
        tournament_scores = await self.db.get_or_create_tournament_scores(
            submitted_ids, match.tournament_id, match.group_id, session
        )

        # The two ladders are rated independently
        all_time_changes = {
            change.player_id: change
            for change in EloCalculator.calculate_race_elo_changes([
                RacePlayerResult(pid, position, players[pid].elo_rating)
                for pid, position in race_results
            ])
        }
        tournament_changes = {
            change.player_id: change
            for change in EloCalculator.calculate_race_elo_changes([
                RacePlayerResult(pid, position, tournament_scores[pid].elo_rating)
                for pid, position in race_results
            ])
        }

        self.logger.debug(
            f"Round {round_number} of match {match_id} rating changes: " + ", ".join(
                f"{pid} P{position} all-time {EloCalculator.format_elo_change(all_time_changes[pid].elo_change)}"
                f" tournament {EloCalculator.format_elo_change(tournament_changes[pid].elo_change)}"
                for pid, position in race_results
            )
        )

        for pid, position in race_results:
            session.add(PlayerRaceScore(
                match_id=match_id,
                round_number=round_number,
                player_id=pid,
                group_id=match.group_id,
                position=position,
                all_time_elo_change=all_time_changes[pid].elo_change,
                all_time_elo_after=all_time_changes[pid].new_elo,
                tournament_elo_change=tournament_changes[pid].elo_change,
                tournament_elo_after=tournament_changes[pid].new_elo
            ))

        roster = await self.db.get_match_roster(match_id, session)
        player_to_team = {member.player_id: member.team_id for member in roster}
        team_to_players = group_by(roster, key=lambda m: m.team_id, value=lambda m: m.player_id)

        contributions, adjustments = calculate_teammate_contributions(
            race_results,
            player_to_team,
            team_to_players,
            {pid: change.elo_change for pid, change in tournament_changes.items()}
        )

        for contribution in contributions:
            session.add(TeammateEloContribution(
                match_id=match_id,
                round_number=round_number,
                source_player_id=contribution.source_player_id,
                beneficiary_player_id=contribution.beneficiary_player_id,
                source_tournament_elo_change=contribution.source_tournament_elo_change,
                contribution_amount=contribution.contribution_amount
            ))

        bystander_ids = [pid for pid in adjustments if pid not in tournament_changes]
        if bystander_ids:
            tournament_scores.update(await self.db.get_or_create_tournament_scores(
                bystander_ids, match.tournament_id, match.group_id, session
            ))

        for pid, change in tournament_changes.items():
            tournament_scores[pid].elo_rating = change.new_elo + adjustments.get(pid, 0)
        for pid in bystander_ids:
            tournament_scores[pid].elo_rating += adjustments[pid]
        for pid, change in all_time_changes.items():
            players[pid].elo_rating = change.new_elo

        await self._update_player_match_scores(
            session, match, submitted_ids + bystander_ids,
            all_time_changes, tournament_changes, adjustments
        )

        # Re-checked inside this transaction so only one "last round" can complete the match
        remaining = await session.scalar(
            select(func.count()).select_from(Round).where(
                Round.match_id == match_id,
                Round.completed.is_(False)
            )
        )
        if remaining == 0:
            await self._complete_match(session, match)

        return await self._load_match(session, match_id)

    async def _update_player_match_scores(
        self,
        session: AsyncSession,
        match: Match,
        player_ids: List[str],
        all_time_changes: Dict[str, Any],
        tournament_changes: Dict[str, Any],
        adjustments: Dict[str, int]
    ) -> None:
        """Fold this round's deltas into the per-match aggregates"""
        result = await session.execute(
            select(PlayerMatchScore).where(
                PlayerMatchScore.match_id == match.id,
                PlayerMatchScore.player_id.in_(player_ids)
            )
        )
        match_scores = {score.player_id: score for score in result.scalars().all()}

        result = await session.execute(
            select(PlayerRaceScore.player_id, PlayerRaceScore.position).where(
                PlayerRaceScore.match_id == match.id,
                PlayerRaceScore.player_id.in_(list(tournament_changes))
            )
        )
        positions = group_by(result.all(), key=lambda row: row[0], value=lambda row: row[1])

        for pid in player_ids:
            score = match_scores.get(pid)
            if score is None:
                score = PlayerMatchScore(
                    match_id=match.id, player_id=pid, group_id=match.group_id,
                    elo_change=0, tournament_elo_change=0,
                    tournament_elo_from_races=0, tournament_elo_from_contributions=0
                )
                session.add(score)

            if pid in tournament_changes:
                score.position = average_position(positions.get(pid, []))
                score.elo_change += all_time_changes[pid].elo_change
                score.tournament_elo_from_races += tournament_changes[pid].elo_change

            score.tournament_elo_from_contributions += adjustments.get(pid, 0)
            score.tournament_elo_change = score.tournament_elo_from_races + score.tournament_elo_from_contributions

    async def _complete_match(self, session: AsyncSession, match: Match) -> None:
        """Store final team scores and flip the match to completed"""
        result = await session.execute(
            select(RoundPlayer.team_id, PlayerRaceScore.position)
            .join(
                PlayerRaceScore,
                (PlayerRaceScore.match_id == RoundPlayer.match_id)
                & (PlayerRaceScore.round_number == RoundPlayer.round_number)
                & (PlayerRaceScore.player_id == RoundPlayer.player_id)
            )
            .where(RoundPlayer.match_id == match.id)
        )
        team_scores = calculate_team_scores_from_positions(result.all(), match.rounds)

        result = await session.execute(select(Team).where(Team.match_id == match.id))
        for team in result.scalars().all():
            team.score = team_scores.get(team.id, 0.0)
            session.add(TeamMatchScore(
                match_id=match.id, team_id=team.id, group_id=match.group_id, score=team.score
            ))

        completed = await session.execute(
            update(Match)
            .where(Match.id == match.id, Match.completed.is_(False))
            .values(completed=True)
            .execution_options(synchronize_session=False)
        )
        if completed.rowcount == 0:
            raise ConflictError(f"Match {match.id} is already completed", "This match has already finished.")

        self.logger.info(f"Match {match.id} completed with team scores {team_scores}")

    # ============================================================================
    # Corrections before scoring
    # ============================================================================

    async def swap_round_player(
        self,
        match_id: str,
        round_number: int,
        current_player_id: str,
        new_player_id: str
    ) -> Match:
        """
        Replace a racer in an unscored round with a teammate.

        The replacement races for the same team in the same slot.

        Returns:
            Match: The match with its teams and round lineups reloaded

        Raises:
            ValidationError: If the swap would break the one-player-per-team lineup
            NotFoundError: If the match or round does not exist
            ConflictError: If the match is completed or the round already scored
            InternalError: If the database operation fails
        """
        try:
            async with self.db.transaction() as session:
                result = await session.execute(
                    select(Match).where(Match.id == match_id).with_for_update()
                )
                match = result.scalar_one_or_none()
                if match is None:
                    raise NotFoundError("Match", match_id)
                if match.completed:
                    raise ConflictError(f"Match {match_id} is already completed", "This match has already finished.")

                round_record = await self.db.get_round(match_id, round_number, session=session)
                if round_record is None:
                    raise NotFoundError("Round", f"{round_number} of match {match_id}")
                if round_record.completed:
                    raise ConflictError(f"Round {round_number} of match {match_id} is already scored",
                                        "Players can't be swapped after results are recorded.")

                result = await session.execute(
                    select(RoundPlayer).where(
                        RoundPlayer.match_id == match_id,
                        RoundPlayer.round_number == round_number
                    )
                )
                lineup = {entry.player_id: entry for entry in result.scalars().all()}

                current = lineup.get(current_player_id)
                if current is None:
                    raise ValidationError(f"Player {current_player_id} is not racing in round {round_number}")
                if new_player_id in lineup:
                    raise ValidationError(f"Player {new_player_id} is already racing in round {round_number}")

                result = await session.execute(
                    select(TeamPlayer).where(
                        TeamPlayer.team_id == current.team_id,
                        TeamPlayer.player_id == new_player_id
                    )
                )
                if result.scalar_one_or_none() is None:
                    raise ValidationError(
                        f"Player {new_player_id} is not on team {current.team_id}",
                        "Players can only be swapped with a teammate."
                    )

                await session.delete(current)
                session.add(RoundPlayer(
                    match_id=match_id,
                    round_number=round_number,
                    player_id=new_player_id,
                    group_id=current.group_id,
                    team_id=current.team_id,
                    player_position=current.player_position
                ))
                await session.flush()
                match = await self._load_match(session, match_id)
        except KartRankError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to swap player in round {round_number} of match {match_id}: {e}")
            raise InternalError("player swap", str(e)) from e

        self.logger.info(
            f"Swapped player {current_player_id} for {new_player_id} in round {round_number} of match {match_id}"
        )
        self._notify(match.id, match.tournament_id, round_number, match.group_id)
        return match

    async def cancel_match(self, match_id: str) -> None:
        """
        Delete a match that has not had any round scored.

        Raises:
            NotFoundError: If the match does not exist
            ConflictError: If the match is completed or any round has been scored
            InternalError: If the database operation fails
        """
        try:
            async with self.db.transaction() as session:
                result = await session.execute(
                    select(Match).where(Match.id == match_id).with_for_update()
                )
                match = result.scalar_one_or_none()
                if match is None:
                    raise NotFoundError("Match", match_id)
                if match.completed:
                    raise ConflictError(f"Cannot cancel completed Match {match_id}")

                scored_rounds = await session.scalar(
                    select(func.count()).select_from(Round).where(
                        Round.match_id == match_id,
                        Round.completed.is_(True)
                    )
                )
                if scored_rounds:
                    raise ConflictError(
                        f"Cannot cancel Match {match_id} with {scored_rounds} scored rounds",
                        "Ratings have already changed for this match, it can't be cancelled."
                    )

                team_ids = select(Team.id).where(Team.match_id == match_id)
                await session.execute(sql_delete(RoundPlayer).where(RoundPlayer.match_id == match_id))
                await session.execute(sql_delete(Round).where(Round.match_id == match_id))
                await session.execute(sql_delete(PlayerMatchScore).where(PlayerMatchScore.match_id == match_id))
                await session.execute(sql_delete(TeamPlayer).where(TeamPlayer.team_id.in_(team_ids)))
                await session.execute(sql_delete(Team).where(Team.match_id == match_id))
                await session.execute(sql_delete(Match).where(Match.id == match_id))
        except KartRankError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to cancel match {match_id}: {e}")
            raise InternalError("match cancellation", str(e)) from e

        self.logger.info(f"Cancelled match {match_id}")

    # ============================================================================
    # Reads
    # ============================================================================

    async def get_match(self, match_id: str) -> Match:
        match = await self.db.get_match(match_id)
        if match is None:
            raise NotFoundError("Match", match_id)
        return match

    async def _load_match(self, session: AsyncSession, match_id: str) -> Match:
        result = await session.execute(
            select(Match)
            .options(
                selectinload(Match.teams).selectinload(Team.members),
                selectinload(Match.round_records).selectinload(Round.players)
            )
            .where(Match.id == match_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    def _notify(self, match_id: str, tournament_id: str, round_number: int, group_id: str) -> None:
        if self.notifications is None:
            return
        try:
            self.notifications.notify(RaceResultNotification(
                match_id=match_id,
                tournament_id=tournament_id,
                round_number=round_number,
                group_id=group_id
            ))
        except Exception as e:
            self.logger.error(f"Failed to send notification for match {match_id}: {e}")
