"""
Per-client token-bucket rate limiting.

The client table is shared by every request, so a single lock guards it.
A background task started by the application lifespan evicts clients that
have gone quiet.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional
import asyncio
import logging
import threading
import time

# Set up logging
logger = logging.getLogger(__name__)


@dataclass
class TokenBucket:
    """
    Classic token bucket: `rate` tokens per second, at most `burst` stored.
    """
    rate: float
    burst: int
    tokens: float = field(init=False)
    updated_at: float = field(default=0.0)

    def __post_init__(self):
        self.tokens = float(self.burst)

    def allow(self, now: float) -> bool:
        """Take one token if available"""
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(float(self.burst), self.tokens + elapsed * self.rate)
        self.updated_at = now
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False


@dataclass
class _Client:
    bucket: TokenBucket
    last_seen: float


class ClientRateLimiter:
    """
    Rate limiter keyed by client address.
    
    Attributes:
        rate: Tokens added per second to each client's bucket
        burst: Bucket size
        idle_seconds: Clients not seen for this long are evicted by `sweep`
        sweep_seconds: Interval between sweeps once `start` has been called
    """
    def __init__(
        self,
        rate: float,
        burst: int,
        idle_seconds: float = 180,
        sweep_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic
    ):
        self.rate = rate
        self.burst = burst
        self.idle_seconds = idle_seconds
        self.sweep_seconds = sweep_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._clients: Dict[str, _Client] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def allow(self, client_id: str) -> bool:
        """
        Record a request from `client_id` and decide whether it may proceed.
        
        Args:
            client_id: Client address
            
        Returns:
            bool: False when the client's bucket is empty
        """
        now = self._clock()
        with self._lock:
            client = self._clients.get(client_id)
            if client is None:
                bucket = TokenBucket(rate=self.rate, burst=self.burst, updated_at=now)
                client = _Client(bucket=bucket, last_seen=now)
                self._clients[client_id] = client
            client.last_seen = now
            return client.bucket.allow(now)

    def sweep(self) -> int:
        """
        Evict clients idle for longer than `idle_seconds`.
        
        Returns:
            int: Number of evicted clients
        """
        now = self._clock()
        with self._lock:
            stale = [
                client_id for client_id, client in self._clients.items()
                if now - client.last_seen > self.idle_seconds
            ]
            for client_id in stale:
                del self._clients[client_id]
        if stale:
            logger.debug(f"Rate limiter evicted {len(stale)} idle clients")
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    @property
    def running(self) -> bool:
        """Whether the background sweeper is active"""
        return self._sweeper is not None and not self._sweeper.done()

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_seconds)
            self.sweep()

    def start(self) -> None:
        """Start the background sweeper on the running event loop"""
        if self.running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())
        logger.info("Rate limiter sweeper started")

    async def stop(self) -> None:
        """Cancel the background sweeper and wait for it to finish"""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
        logger.info("Rate limiter sweeper stopped")
