from .redis_refresh_token_store import RedisRefreshTokenStore
from .redis_ttl_cache import RedisTtlCache

__all__ = ["RedisRefreshTokenStore", "RedisTtlCache"]
