from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import selectinload

from kartrank.config import Config
from kartrank.constants import TrackConstants
from kartrank.database.models import (
    Base, Group, Player, Track, Tournament, PlayerTournamentScore,
    Match, Team, TeamPlayer, Round, RoundPlayer
)
from kartrank.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.engine = None
        self.async_session = None
        
    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")
        
        database_url = self.database_url or Config.get_async_database_url()
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        
        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )
        
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        
        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            
        self.logger.info("Database initialized successfully")
        
        await self.initialize_default_data()
        
    async def initialize_default_data(self):
        """Seed the track catalog on first start"""
        async with self.transaction() as session:
            result = await session.execute(select(func.count(Track.id)))
            track_count = result.scalar()
            
            if track_count == 0:
                self.logger.info("Initializing default tracks...")
                for name in TrackConstants.DEFAULT_TRACKS:
                    session.add(Track(name=name))
                self.logger.info(f"Added {len(TrackConstants.DEFAULT_TRACKS)} default tracks")
    
    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
    
    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.
        
        Everything done with the yielded session is committed together on
        success, or rolled back together if an exception leaves the context.
        
        Usage:
            async with db.transaction() as session:
                session.add(match)
                await track_selector.select_tracks(session, tournament_id, 4)
                # All writes commit together here
        
        Important: Exceptions must be allowed to propagate out of the context
        for rollback to occur.
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
    
    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
    
    # Groups, players and tournaments
    
    async def create_group(self, name: str) -> Group:
        async with self.transaction() as session:
            group = Group(name=name)
            session.add(group)
            await session.flush()
            self.logger.info(f"Created group {group.id} ({name})")
            return group
    
    async def create_player(self, group_id: str, name: str, elo_rating: int = None) -> Player:
        async with self.transaction() as session:
            player = Player(
                group_id=group_id,
                name=name,
                elo_rating=Config.STARTING_ELO if elo_rating is None else elo_rating
            )
            session.add(player)
            await session.flush()
            self.logger.info(f"Created player {player.id} ({name}) in group {group_id}")
            return player
    
    async def create_tournament(self, group_id: str, start_date=None, end_date=None) -> Tournament:
        async with self.transaction() as session:
            tournament = Tournament(group_id=group_id, start_date=start_date, end_date=end_date)
            session.add(tournament)
            await session.flush()
            self.logger.info(f"Created tournament {tournament.id} in group {group_id}")
            return tournament
    
    async def get_player(self, player_id: str) -> Optional[Player]:
        async with self.get_session() as session:
            result = await session.execute(
                select(Player).where(Player.id == player_id)
            )
            return result.scalar_one_or_none()
    
    async def get_players(self, player_ids: List[str], session: AsyncSession,
                          lock: bool = False) -> Dict[str, Player]:
        """
        Load players by id within the caller's session, keyed by id.

        With lock=True the rows are selected FOR UPDATE and refreshed from the
        database, so a rating read here is the one the caller writes back.
        """
        if not player_ids:
            return {}
        query = select(Player).where(Player.id.in_(player_ids))
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await session.execute(query)
        return {player.id: player for player in result.scalars().all()}
    
    async def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        async with self.get_session() as session:
            result = await session.execute(
                select(Tournament)
                .options(selectinload(Tournament.stats))
                .where(Tournament.id == tournament_id)
            )
            return result.scalar_one_or_none()
    
    async def get_tournament_leaderboard(self, tournament_id: str) -> List[PlayerTournamentScore]:
        """Tournament ratings from highest to lowest"""
        async with self.get_session() as session:
            result = await session.execute(
                select(PlayerTournamentScore)
                .where(PlayerTournamentScore.tournament_id == tournament_id)
                .order_by(PlayerTournamentScore.elo_rating.desc(), PlayerTournamentScore.player_id)
            )
            return result.scalars().all()
    
    async def get_or_create_tournament_scores(
        self,
        player_ids: List[str],
        tournament_id: str,
        group_id: str,
        session: AsyncSession
    ) -> Dict[str, PlayerTournamentScore]:
        """
        Bulk get or create PlayerTournamentScore rows for players in a tournament.
        
        Args:
            player_ids: Players to fetch or create scores for
            tournament_id: Tournament the scores belong to
            group_id: Owning group for new rows
            session: Database session for the operation
            
        Returns:
            Dict mapping player_id to PlayerTournamentScore
        """
        if not player_ids:
            return {}
        
        # NOTE: On SQLite, with_for_update() relies on the database-level write lock
        result = await session.execute(
            select(PlayerTournamentScore).where(
                PlayerTournamentScore.player_id.in_(player_ids),
                PlayerTournamentScore.tournament_id == tournament_id
            ).with_for_update()
        )
        scores = {score.player_id: score for score in result.scalars().all()}
        
        missing_player_ids = [pid for pid in dict.fromkeys(player_ids) if pid not in scores]
        for player_id in missing_player_ids:
            score = PlayerTournamentScore(
                player_id=player_id,
                tournament_id=tournament_id,
                group_id=group_id,
                elo_rating=Config.TOURNAMENT_STARTING_ELO
            )
            session.add(score)
            scores[player_id] = score
        
        if missing_player_ids:
            await session.flush()
        
        return scores
    
    # Matches and rounds
    
    async def get_match(self, match_id: str) -> Optional[Match]:
        """Load a match with its teams, members and rounds"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Match)
                .options(
                    selectinload(Match.teams).selectinload(Team.members),
                    selectinload(Match.round_records).selectinload(Round.players)
                )
                .where(Match.id == match_id)
            )
            return result.scalar_one_or_none()
    
    async def get_round(self, match_id: str, round_number: int,
                        session: AsyncSession = None) -> Optional[Round]:
        if session is not None:
            return await session.get(Round, (match_id, round_number))
        async with self.get_session() as new_session:
            return await new_session.get(Round, (match_id, round_number))
    
    async def get_round_player_ids(self, match_id: str, round_number: int,
                                   session: AsyncSession) -> List[str]:
        result = await session.execute(
            select(RoundPlayer.player_id)
            .where(
                RoundPlayer.match_id == match_id,
                RoundPlayer.round_number == round_number
            )
            .order_by(RoundPlayer.player_position)
        )
        return list(result.scalars().all())
    
    async def get_match_roster(self, match_id: str, session: AsyncSession) -> List[TeamPlayer]:
        """Every TeamPlayer of the match, ordered by team number then draft rank"""
        result = await session.execute(
            select(TeamPlayer)
            .join(Team, TeamPlayer.team_id == Team.id)
            .where(Team.match_id == match_id)
            .order_by(Team.team_num, TeamPlayer.rank)
        )
        return list(result.scalars().all())
    
    async def get_all_tracks(self, session: AsyncSession = None) -> List[Track]:
        if session is not None:
            result = await session.execute(select(Track).order_by(Track.name))
            return list(result.scalars().all())
        async with self.get_session() as new_session:
            result = await new_session.execute(select(Track).order_by(Track.name))
            return list(result.scalars().all())
