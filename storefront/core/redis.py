# storefront/core/redis.py
import redis.asyncio as redis
from storefront.core.config import settings

# Асинхронный клиент Redis. Подключение ленивое, поэтому импорт модуля
# не требует работающего Redis.
# decode_responses=True автоматически декодирует ответы из байтов в строки
redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
