import os
import asyncio
from prometheus_client import Counter, start_http_server
import logging

logger = logging.getLogger(__name__)

REDIS = None

MESSAGES_SENT = Counter('podshare_messages_sent_total', 'Messages sent', ['target'])
UPLOAD_CHUNKS_WRITTEN = Counter('podshare_upload_chunks_written_total', 'Upload chunks written to disk')
UPLOADS_COMPLETED = Counter('podshare_uploads_completed_total', 'Uploads marked completed')

def init_metrics(port: int = None):
    """Initialize Prometheus metrics server"""
    port = port if port is not None else int(os.getenv('METRICS_PORT', '8001'))
    if not port:
        return
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except Exception as e:
        logger.warning(f'Prometheus start failed: {e}')

async def redis_startup():
    """Start Redis connection used by the rate limiter"""
    global REDIS

    from redis import asyncio as redis_asyncio

    redis_url = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    max_retries = 3
    retry_delay = 3  # seconds

    for attempt in range(max_retries):
        try:
            logger.info(f"Attempting to connect to Redis: {redis_url} (attempt {attempt + 1}/{max_retries})")

            REDIS = redis_asyncio.from_url(
                redis_url,
                decode_responses=False,
                max_connections=20,
                health_check_interval=30,
                socket_connect_timeout=5,
                socket_timeout=5
            )

            # Test the connection
            await REDIS.ping()

            logger.info("Redis connected successfully")
            break

        except Exception as e:
            logger.warning(f'Redis startup attempt {attempt + 1} failed: {e}')
            if REDIS:
                try:
                    await REDIS.close()
                except Exception:
                    logger.debug('Redis close after failed startup raised', exc_info=True)
                REDIS = None

            if attempt < max_retries - 1:
                logger.info(f"Retrying Redis connection in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error("Failed to connect to Redis after all retries")

async def shutdown_connections():
    """Gracefully shutdown all connections"""
    global REDIS
    logger.info("Shutting down connections...")

    if REDIS:
        try:
            await REDIS.close()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.error(f"Error closing Redis connection: {e}")
        REDIS = None
