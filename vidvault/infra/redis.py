from typing import Optional
import redis.asyncio as aioredis
from redis.exceptions import RedisError
from rich.console import Console
from vidvault.config.settings import RedisConfig
from vidvault.core.state import state

console = Console()

async def init_redis(redis_config: RedisConfig) -> None:
    """Connect Redis for the metadata cache; the service runs without it on failure"""
    if not redis_config.enabled:
        state.redis = None
        return

    try:
        redis_client = aioredis.from_url(
            redis_config.url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=redis_config.socket_timeout
        )
        await redis_client.ping()
        state.redis = redis_client
        console.print("[green]✓ Redis connected[/green]")

    except (RedisError, OSError) as e:
        console.print(f"[yellow]⚠ Redis connection failed: {str(e)}[/yellow]")
        state.redis = None

def get_redis() -> Optional[aioredis.Redis]:
    """Get Redis client from state"""
    return state.redis

async def close_redis() -> None:
    """Close Redis connection"""
    if state.redis:
        await state.redis.aclose()
        state.redis = None
        console.print("[dim]✓ Redis connection closed[/dim]")
