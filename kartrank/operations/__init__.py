"""
Operations Layer

Business logic that composes database reads and writes into complete
workflows. Each module focuses on a single concern:
- TrackSelector: shuffle-bag track draws for new matches
- TournamentOperations: closing a tournament with its winner and statistics

Match creation and result recording live in kartrank.database.match_operations
next to the session helpers they lean on.
"""

from .track_selection import TrackSelector
from .tournament_operations import TournamentOperations

__all__ = ['TrackSelector', 'TournamentOperations']
