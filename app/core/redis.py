import redis.asyncio as redis
from app.core.config import settings

class RedisClient:
    """Short-lived state: OTP codes and issued session tokens, both with TTLs."""

    def __init__(self, url: str = settings.REDIS_URL):
        self.redis = redis.from_url(url, encoding="utf-8", decode_responses=True)

    async def set_otp(self, phone: str, code: str, expire: int):
        await self.redis.set(f"otp:{phone}", code, ex=expire)

    async def get_otp(self, phone: str) -> str | None:
        return await self.redis.get(f"otp:{phone}")

    async def delete_otp(self, phone: str):
        await self.redis.delete(f"otp:{phone}")

    async def set_token(self, token: str, value: str, expire: int):
        await self.redis.set(f"token:{token}", value, ex=expire)

    async def get_token(self, token: str) -> str | None:
        return await self.redis.get(f"token:{token}")

    async def delete_token(self, token: str):
        await self.redis.delete(f"token:{token}")

    async def close(self):
        await self.redis.aclose()

redis_client = RedisClient()

def get_redis() -> RedisClient:
    return redis_client
