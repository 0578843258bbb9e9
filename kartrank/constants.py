"""
Domain constants for KartRank.

Fixed rules of a Mario Kart race and of the scoring tables. Tunable values
(K-factor, starting ratings, contribution rate) live in Config instead.
"""

class EloConstants:
    """Constants describing the synthetic 24-racer field."""
    
    # Every race is rated as a full grid, humans plus CPUs
    RACE_SIZE = 24
    
    # CPU rating curve: 1400 at position 1, dropping 100 per position down to 600
    CPU_MAX_ELO = 1400
    CPU_MIN_ELO = 600
    CPU_ELO_STEP = 100
    
    # Standard logistic scale
    RATING_SCALE = 400

class ScoringConstants:
    """Position to team points table."""
    
    # Positions 1..12 score points, everything below scores nothing
    POSITION_POINTS = {
        1: 15,
        2: 12,
        3: 10,
        4: 9,
        5: 8,
        6: 7,
        7: 6,
        8: 5,
        9: 4,
        10: 3,
        11: 2,
        12: 1,
    }
    
    MIN_POSITION = 1
    MAX_POSITION = 24

class RaceAllocationConstants:
    """Weights used when scheduling uneven teams."""
    
    # Outweighs any realistic rating gap so usage stays balanced first
    USAGE_PENALTY = 5000

class TrackConstants:
    """Default Mario Kart World track catalog."""
    
    DEFAULT_TRACKS = [
        "Acorn Heights",
        "Boo Cinema",
        "Mario Circuit",
        "Starview Peak",
        "Sky-High Sundae",
        "DK Pass",
        "Dandelion Depths",
        "Cheep Cheep Falls",
        "Wario's Galleon",
        "Salty Salty Speedway",
        "Peach Beach",
        "Great ? Block Ruins",
        "Dino Dino Jungle",
        "Faraway Oasis",
        "Peach Stadium",
        "Moo Moo Meadows",
        "Choco Mountain",
        "Toad's Factory",
        "Crown City",
        "Koopa Troopa Beach",
        "DK Spaceport",
        "Whistlestop Summit",
        "Desert Hills",
        "Mario Bros. Circuit",
        "Shy Guy Bazaar",
        "Wario Stadium",
        "Airship Fortress",
        "Bowser's Castle",
        "Dry Bones Burnout",
        "Rainbow Road",
    ]
