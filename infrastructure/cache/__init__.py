from .factory import RedisClientFactory, FailableRedisFactory, LazyResource

__all__ = ["RedisClientFactory", "FailableRedisFactory", "LazyResource"]
