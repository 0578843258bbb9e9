"""KartRank: match lifecycle and rating engine for kart racing tournaments."""

__version__ = "1.0.0"
