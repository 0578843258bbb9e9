"""
Notification service for live match updates.

Publishes a small payload whenever a match is created, a round is scored or a
lineup changes. Delivery is fire-and-forget: it is only ever invoked after the
database transaction has committed, and a delivery failure is logged but never
reported back to the operation that triggered it.
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional, Set

from kartrank.config import Config
from kartrank.utils.redis_utils import RedisUtils

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class RaceResultNotification:
    """What changed. round_number 0 means the match itself was created."""
    match_id: str
    tournament_id: str
    round_number: int
    group_id: str
    
    def to_json(self) -> str:
        return json.dumps(asdict(self))

Listener = Callable[[RaceResultNotification], None]

class NotificationService:
    """In-process listeners plus optional Redis pub/sub fan-out."""
    
    def __init__(self, redis_client=None, channel: str = None):
        """
        Initialize notification service.
        
        Args:
            redis_client: Optional redis.asyncio client used for PUBLISH
            channel: Redis channel name, defaults to Config.NOTIFICATION_CHANNEL
        """
        self.redis = redis_client
        self.channel = channel or Config.NOTIFICATION_CHANNEL
        self._listeners: List[Listener] = []
        self._pending: Set[asyncio.Task] = set()
    
    @classmethod
    async def create(cls) -> 'NotificationService':
        """Build a service connected to Redis when REDIS_URL is configured"""
        return cls(redis_client=await RedisUtils.create_redis_client())
    
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for notifications.
        
        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)
        
        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        
        return unsubscribe
    
    def notify(self, notification: RaceResultNotification) -> None:
        """Deliver a notification without blocking the caller"""
        logger.info(
            f"Broadcasting to {len(self._listeners)} listeners - match_id={notification.match_id}, "
            f"tournament_id={notification.tournament_id}, round={notification.round_number}"
        )
        
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.error(f"Notification listener failed: {e}")
        
        if self.redis is not None:
            self._schedule_publish(notification)
    
    def _schedule_publish(self, notification: RaceResultNotification):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, skipping Redis publish")
            return
        
        task = loop.create_task(self._publish(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
    
    async def _publish(self, notification: RaceResultNotification):
        try:
            receivers = await self.redis.publish(self.channel, notification.to_json())
            logger.debug(f"Published notification to {receivers} Redis subscribers")
        except Exception as e:
            logger.error(f"Failed to publish notification to Redis: {e}")
    
    async def drain(self, timeout: Optional[float] = None):
        """Wait for in-flight Redis publishes, used on shutdown"""
        if self._pending:
            await asyncio.wait(list(self._pending), timeout=timeout)
    
    async def close(self):
        """Flush pending publishes and close the Redis client"""
        await self.drain(timeout=5)
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
