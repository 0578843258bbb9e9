import uuid
from enum import Enum

from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Boolean, Float, JSON,
    ForeignKey, ForeignKeyConstraint, Enum as SQLEnum, UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from kartrank.config import Config
from kartrank.utils.team_allocation import TeamMode

Base = declarative_base()

def new_id() -> str:
    return str(uuid.uuid4())

class TournamentStatType(Enum):
    BEST_TEAMMATE = "best_teammate"
    WORST_TEAMMATE = "worst_teammate"
    BEST_RACE = "best_race"
    WORST_RACE = "worst_race"
    BIGGEST_SWING = "biggest_swing"
    MOST_HELPED = "most_helped"
    MOST_HURT = "most_hurt"
    BEST_MATCH = "best_match"
    WORST_MATCH = "worst_match"

class Group(Base):
    __tablename__ = 'groups'
    
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime, default=func.now())
    
    def __repr__(self):
        return f"<Group(id={self.id}, name='{self.name}')>"

class Player(Base):
    __tablename__ = 'players'
    
    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    
    # All-time rating, carried across tournaments
    elo_rating = Column(Integer, nullable=False, default=Config.STARTING_ELO)
    avatar_filename = Column(String(255), nullable=True)
    
    created_at = Column(DateTime, default=func.now())
    
    tournament_scores = relationship("PlayerTournamentScore", back_populates="player")
    
    __table_args__ = (
        UniqueConstraint('group_id', 'name', name='uq_player_name_per_group'),
        Index('idx_players_elo_rating', 'elo_rating'),
    )
    
    def __repr__(self):
        return f"<Player(id={self.id}, name='{self.name}', elo={self.elo_rating})>"

class Track(Base):
    __tablename__ = 'tracks'
    
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, unique=True)
    
    def __repr__(self):
        return f"<Track(name='{self.name}')>"

class Tournament(Base):
    __tablename__ = 'tournaments'
    
    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    
    # Set exactly once, by tournament completion
    winner_id = Column(String(36), ForeignKey('players.id'), nullable=True)
    
    created_at = Column(DateTime, default=func.now())
    
    winner = relationship("Player", foreign_keys=[winner_id])
    matches = relationship("Match", back_populates="tournament")
    stats = relationship("TournamentStat", back_populates="tournament", cascade="all, delete-orphan")
    
    @property
    def is_completed(self) -> bool:
        return self.winner_id is not None
    
    def __repr__(self):
        return f"<Tournament(id={self.id}, winner={self.winner_id})>"

class PlayerTournamentScore(Base):
    """Per-tournament rating, created lazily at the tournament starting Elo"""
    __tablename__ = 'player_tournament_scores'
    
    id = Column(Integer, primary_key=True)
    player_id = Column(String(36), ForeignKey('players.id', ondelete='CASCADE'), nullable=False)
    tournament_id = Column(String(36), ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    elo_rating = Column(Integer, nullable=False, default=Config.TOURNAMENT_STARTING_ELO)
    
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    
    player = relationship("Player", back_populates="tournament_scores")
    
    __table_args__ = (
        UniqueConstraint('player_id', 'tournament_id', name='uq_player_tournament_score'),
        Index('idx_player_tournament_scores_tournament', 'tournament_id', 'elo_rating'),
    )
    
    def __repr__(self):
        return f"<PlayerTournamentScore(player_id={self.player_id}, tournament_id={self.tournament_id}, elo={self.elo_rating})>"

class Match(Base):
    __tablename__ = 'matches'
    
    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True)
    tournament_id = Column(String(36), ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False, index=True)
    time = Column(DateTime(timezone=True), nullable=False)
    rounds = Column(Integer, nullable=False)
    team_mode = Column(SQLEnum(TeamMode), nullable=False, default=TeamMode.BALANCED)
    completed = Column(Boolean, nullable=False, default=False, index=True)
    
    tournament = relationship("Tournament", back_populates="matches")
    teams = relationship("Team", back_populates="match", cascade="all, delete-orphan",
                         order_by="Team.team_num")
    round_records = relationship("Round", back_populates="match", cascade="all, delete-orphan",
                                 order_by="Round.round_number")
    
    __table_args__ = (
        CheckConstraint('rounds > 0', name='positive_round_count_check'),
    )
    
    def __repr__(self):
        return f"<Match(id={self.id}, rounds={self.rounds}, completed={self.completed})>"

class Team(Base):
    __tablename__ = 'teams'
    
    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    match_id = Column(String(36), ForeignKey('matches.id', ondelete='CASCADE'), nullable=False, index=True)
    team_num = Column(Integer, nullable=False)
    
    # Average points per round, set when the match completes
    score = Column(Float, nullable=True)
    
    match = relationship("Match", back_populates="teams")
    members = relationship("TeamPlayer", back_populates="team", cascade="all, delete-orphan",
                           order_by="TeamPlayer.rank")
    
    __table_args__ = (
        UniqueConstraint('match_id', 'team_num', name='uq_team_num_per_match'),
    )
    
    @property
    def player_ids(self):
        return [member.player_id for member in self.members]
    
    def __repr__(self):
        return f"<Team(match_id={self.match_id}, team_num={self.team_num}, score={self.score})>"

class TeamPlayer(Base):
    __tablename__ = 'team_players'
    
    team_id = Column(String(36), ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True)
    player_id = Column(String(36), ForeignKey('players.id', ondelete='CASCADE'), primary_key=True)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    
    # Draft order within the team, 1-based
    rank = Column(Integer, nullable=False)
    
    team = relationship("Team", back_populates="members")
    player = relationship("Player")

class Round(Base):
    __tablename__ = 'rounds'
    
    match_id = Column(String(36), ForeignKey('matches.id', ondelete='CASCADE'), primary_key=True)
    round_number = Column(Integer, primary_key=True)
    track_id = Column(String(36), ForeignKey('tracks.id'), nullable=True, index=True)
    completed = Column(Boolean, nullable=False, default=False)
    
    match = relationship("Match", back_populates="round_records")
    track = relationship("Track")
    players = relationship("RoundPlayer", back_populates="round", cascade="all, delete-orphan",
                           order_by="RoundPlayer.player_position")
    
    def __repr__(self):
        return f"<Round(match_id={self.match_id}, round={self.round_number}, completed={self.completed})>"

class RoundPlayer(Base):
    """Which players race together in a round, and for which team"""
    __tablename__ = 'round_players'
    
    match_id = Column(String(36), primary_key=True)
    round_number = Column(Integer, primary_key=True)
    player_id = Column(String(36), ForeignKey('players.id', ondelete='CASCADE'), primary_key=True)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    team_id = Column(String(36), ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    
    # Slot on the grid, the team number of the racer
    player_position = Column(Integer, nullable=False)
    
    round = relationship("Round", back_populates="players")
    
    __table_args__ = (
        ForeignKeyConstraint(
            ['match_id', 'round_number'], ['rounds.match_id', 'rounds.round_number'],
            ondelete='CASCADE'
        ),
    )
    
    def __repr__(self):
        return f"<RoundPlayer(round={self.round_number}, player_id={self.player_id}, team_id={self.team_id})>"

class PlayerRaceScore(Base):
    """One race result. Append-only, a round is scored exactly once."""
    __tablename__ = 'player_race_scores'
    
    match_id = Column(String(36), ForeignKey('matches.id', ondelete='CASCADE'), primary_key=True)
    round_number = Column(Integer, primary_key=True)
    player_id = Column(String(36), ForeignKey('players.id', ondelete='CASCADE'), primary_key=True)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    position = Column(Integer, nullable=False)
    
    all_time_elo_change = Column(Integer, nullable=False)
    all_time_elo_after = Column(Integer, nullable=False)
    tournament_elo_change = Column(Integer, nullable=False)
    tournament_elo_after = Column(Integer, nullable=False)
    
    created_at = Column(DateTime, default=func.now())
    
    __table_args__ = (
        CheckConstraint('position >= 1 AND position <= 24', name='race_position_range_check'),
        UniqueConstraint('match_id', 'round_number', 'position', name='uq_position_per_round'),
    )
    
    def __repr__(self):
        return f"<PlayerRaceScore(round={self.round_number}, player_id={self.player_id}, position={self.position})>"

class PlayerMatchScore(Base):
    """Per-match aggregate for a player, updated as each round is scored"""
    __tablename__ = 'player_match_scores'
    
    match_id = Column(String(36), ForeignKey('matches.id', ondelete='CASCADE'), primary_key=True)
    player_id = Column(String(36), ForeignKey('players.id', ondelete='CASCADE'), primary_key=True)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    
    # Average finishing position, None until the player has raced
    position = Column(Float, nullable=True)
    
    elo_change = Column(Integer, nullable=False, default=0)
    tournament_elo_change = Column(Integer, nullable=False, default=0)
    tournament_elo_from_races = Column(Integer, nullable=False, default=0)
    tournament_elo_from_contributions = Column(Integer, nullable=False, default=0)
    
    def __repr__(self):
        return f"<PlayerMatchScore(match_id={self.match_id}, player_id={self.player_id}, position={self.position})>"

class TeamMatchScore(Base):
    __tablename__ = 'team_match_scores'
    
    match_id = Column(String(36), ForeignKey('matches.id', ondelete='CASCADE'), primary_key=True)
    team_id = Column(String(36), ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True)
    group_id = Column(String(36), ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    score = Column(Float, nullable=False)

class TeammateEloContribution(Base):
    """Share of a racer's tournament Elo change passed to one teammate. Append-only."""
    __tablename__ = 'player_teammate_elo_contributions'
    
    match_id = Column(String(36), primary_key=True)
    round_number = Column(Integer, primary_key=True)
    source_player_id = Column(String(36), ForeignKey('players.id', ondelete='CASCADE'), primary_key=True)
    beneficiary_player_id = Column(String(36), ForeignKey('players.id', ondelete='CASCADE'), primary_key=True)
    source_tournament_elo_change = Column(Integer, nullable=False)
    contribution_amount = Column(Integer, nullable=False)
    
    created_at = Column(DateTime, default=func.now())
    
    __table_args__ = (
        ForeignKeyConstraint(
            ['match_id', 'round_number'], ['rounds.match_id', 'rounds.round_number'],
            ondelete='CASCADE'
        ),
        Index('idx_teammate_contributions_beneficiary', 'beneficiary_player_id', 'match_id'),
        Index('idx_teammate_contributions_source', 'source_player_id', 'match_id'),
    )

class TournamentStat(Base):
    __tablename__ = 'tournament_stats'
    
    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False, index=True)
    stat_type = Column(SQLEnum(TournamentStatType), nullable=False)
    player_id = Column(String(36), ForeignKey('players.id', ondelete='CASCADE'), nullable=False, index=True)
    value = Column(Integer, nullable=False)
    
    # e.g. {"high_value": 1350, "low_value": 1140} for biggest swing
    extra_data = Column(JSON, nullable=True)
    
    created_at = Column(DateTime, default=func.now())
    
    tournament = relationship("Tournament", back_populates="stats")
    
    __table_args__ = (
        UniqueConstraint('tournament_id', 'stat_type', name='uq_stat_per_tournament'),
    )
    
    def __repr__(self):
        return f"<TournamentStat(type={self.stat_type.value}, player_id={self.player_id}, value={self.value})>"
