import logging
import secrets

from app.core.config import settings
from app.core.redis import RedisClient
from app.core.utils import generate_otp

logger = logging.getLogger("mbote.otp")

class OTPService:
    def __init__(self, redis_client: RedisClient, ttl_seconds: int = settings.OTP_TTL_SECONDS):
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    async def issue(self, phone: str) -> str:
        """Issue a fresh code for `phone`, replacing any previous one."""
        code = generate_otp()
        await self.redis_client.set_otp(phone, code, self.ttl_seconds)
        logger.info("Issued OTP for %s (expires in %ss)", phone, self.ttl_seconds)
        return code

    async def verify(self, phone: str, code: str) -> bool:
        stored = await self.redis_client.get_otp(phone)
        if stored is None:
            logger.info("No active OTP for %s", phone)
            return False

        if not secrets.compare_digest(stored, code):
            logger.info("Wrong OTP submitted for %s", phone)
            return False

        # Codes are single use
        await self.redis_client.delete_otp(phone)
        return True
