import logging
import os
from dotenv import load_dotenv
import redis # type: ignore
# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class RedisClient:
    """Thin wrapper that turns every call into a no-op when Redis is unreachable."""

    def __init__(self):
        self.client = None
        self.is_available = False

        if os.getenv("REDIS_ENABLED", "1") == "0":
            logger.info("Redis disabled by configuration - refresh tokens are not persisted")
            return

        redis_url = os.getenv("REDIS_URL")  # Format: redis://[:password@]host:6379/0

        try:
            if redis_url:
                logger.info("Connecting to Redis via URL...")
                self.client = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                )
            else:
                logger.info("Trying local Redis connection...")
                self.client = redis.Redis(
                    host=os.getenv("REDIS_HOST", "localhost"),
                    port=int(os.getenv("REDIS_PORT", 6379)),
                    db=int(os.getenv("REDIS_DB", 0)),
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                )
            self.client.ping()
            self.is_available = True
            logger.info("Redis connection established")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {str(e)}")
            logger.warning("Redis is not available - refresh tokens are not persisted")
            self.client = None
            self.is_available = False

    def _call(self, operation, key, *args, default=None):
        if not self.is_available:
            logger.debug(f"Redis not available - skipping {operation} for key: {key}")
            return default
        try:
            return getattr(self.client, operation)(key, *args)
        except redis.RedisError as e:
            logger.error(f"Redis error on {operation} for key {key}: {str(e)}")
            return default

    def setex(self, key, expiry, value) -> bool:
        """Set the value of the key with an expiry (seconds or timedelta)"""
        return bool(self._call("setex", key, expiry, value, default=False))

    def get(self, key):
        return self._call("get", key)

    def delete(self, key) -> bool:
        return bool(self._call("delete", key, default=0))

    def exists(self, key) -> bool:
        return bool(self._call("exists", key, default=0))
