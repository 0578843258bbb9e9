"""
Track selection for new matches.

Tracks are drawn from a shuffle bag that spans the whole tournament: once a
track has been played it is held back until the rest of the catalog has had
its turn. The bag is reconstructed from persisted rounds on every call, so
there is no selection state outside the database.
"""

import random
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kartrank.database.models import Match, Round, Track
from kartrank.utils.exceptions import ValidationError
from kartrank.utils.logger import setup_logger

logger = setup_logger(__name__)


class TrackSelector:
    """Picks tracks for a match without near-term repeats within a tournament"""
    
    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the selector.
        
        Args:
            rng: Random source, defaults to the module-level random functions
        """
        self.rng = rng or random
    
    async def _fetch_catalog(self, session: AsyncSession) -> List[Track]:
        result = await session.execute(select(Track).order_by(Track.name))
        return list(result.scalars().all())
    
    async def _fetch_played_track_ids(self, session: AsyncSession, tournament_id: str) -> List[str]:
        """Track ids of the tournament's rounds, most recent first"""
        result = await session.execute(
            select(Round.track_id)
            .join(Match, Round.match_id == Match.id)
            .where(
                Match.tournament_id == tournament_id,
                Round.track_id.is_not(None)
            )
            .order_by(Match.time.desc(), Round.round_number.desc())
        )
        return list(result.scalars().all())
    
    async def select_tracks(self, session: AsyncSession, tournament_id: str, count: int) -> List[Track]:
        """
        Select tracks for the rounds of a new match.
        
        Args:
            session: Database session of the enclosing transaction
            tournament_id: Tournament whose history defines the bag
            count: Number of tracks needed, one per round
            
        Returns:
            `count` distinct tracks in random order
            
        Raises:
            ValidationError: If the catalog is empty or smaller than `count`
        """
        catalog = await self._fetch_catalog(session)
        if not catalog:
            raise ValidationError("No tracks available", "There are no tracks to race on.")
        if count > len(catalog):
            raise ValidationError(
                f"Cannot select {count} tracks from a catalog of {len(catalog)}",
                f"A match can have at most {len(catalog)} rounds."
            )
        
        played = await self._fetch_played_track_ids(session, tournament_id)
        cycle_position = len(played) % len(catalog)
        excluded_ids = set(played[:cycle_position])
        
        available = [track for track in catalog if track.id not in excluded_ids]
        
        if len(available) >= count:
            self.rng.shuffle(available)
            selected = available[:count]
        else:
            # The bag is nearly empty, refill the shortfall from the excluded tracks
            excluded = [track for track in catalog if track.id in excluded_ids]
            self.rng.shuffle(excluded)
            selected = available + excluded[:count - len(available)]
            self.rng.shuffle(selected)
        
        logger.debug(
            f"Selected {count} tracks for tournament {tournament_id} "
            f"(played={len(played)}, cycle_position={cycle_position}, available={len(available)})"
        )
        return selected
