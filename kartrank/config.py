import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """KartRank configuration settings"""
    
    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///kartrank.db')
    
    # Runtime settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    
    # Notification settings
    REDIS_URL = os.getenv('REDIS_URL')
    NOTIFICATION_CHANNEL = os.getenv('NOTIFICATION_CHANNEL', 'race_results_updates')
    
    # Rating settings
    STARTING_ELO = int(os.getenv('STARTING_ELO', 1200))
    TOURNAMENT_STARTING_ELO = int(os.getenv('TOURNAMENT_STARTING_ELO', 1200))
    RACE_K_FACTOR = float(os.getenv('RACE_K_FACTOR', 100))
    
    # Share of a racer's tournament Elo change passed on to each teammate
    TEAMMATE_CONTRIBUTION_RATE = float(os.getenv('TEAMMATE_CONTRIBUTION_RATE', 0.2))
    
    @classmethod
    def get_async_database_url(cls) -> str:
        """Get the database URL with an async driver for SQLite"""
        database_url = cls.DATABASE_URL
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        return database_url
    
    @classmethod
    def validate(cls):
        """Validate that configuration values are usable"""
        if not cls.DATABASE_URL:
            raise ValueError("DATABASE_URL is required")
        if cls.RACE_K_FACTOR <= 0:
            raise ValueError("RACE_K_FACTOR must be positive")
        if not 0 <= cls.TEAMMATE_CONTRIBUTION_RATE <= 1:
            raise ValueError("TEAMMATE_CONTRIBUTION_RATE must be between 0 and 1")
        if cls.STARTING_ELO <= 0 or cls.TOURNAMENT_STARTING_ELO <= 0:
            raise ValueError("Starting Elo values must be positive")
