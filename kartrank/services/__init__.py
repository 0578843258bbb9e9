"""
Services package for KartRank.

Long-lived collaborators shared between requests.
"""

from .notification_service import NotificationService, RaceResultNotification

__all__ = ['NotificationService', 'RaceResultNotification']
