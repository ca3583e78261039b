"""
Caching utilities for storefront and dashboard queries
Uses Redis (django-redis) in production, any Django cache backend otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
CACHE_TTL_SHORT = 60  # 1 minute
CACHE_TTL_MEDIUM = 300  # 5 minutes
CACHE_TTL_LONG = 3600  # 1 hour
CACHE_TTL_DAY = 86400  # 24 hours

# Key prefixes
PRODUCTS_PREFIX = 'products'
PRODUCT_PREFIX = 'product'
CATEGORIES_PREFIX = 'categories'
CATEGORY_PREFIX = 'category'
HOME_FEATURED_PREFIX = 'home_featured'
DASHBOARD_PREFIX = 'dashboard_kpis'
SHIPPING_PREFIX = 'shipping_zones'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    # Convert args and kwargs to a stable string representation
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_or_set(cache_key, fetcher, ttl=CACHE_TTL_MEDIUM):
    """
    Cache-aside lookup.

    Returns the cached value when present, otherwise calls ``fetcher()``,
    stores the result (unless it is None) and returns it. A failing cache
    never fails the caller; the fetcher result is returned instead.
    """
    try:
        cached_data = cache.get(cache_key)
    except Exception as e:
        logger.warning(f"Cache read failed for {cache_key}: {str(e)}")
        return fetcher()

    if cached_data is not None:
        logger.debug(f"Cache HIT: {cache_key}")
        return cached_data

    logger.debug(f"Cache MISS: {cache_key}")
    result = fetcher()
    if result is not None:
        try:
            cache.set(cache_key, result, ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {cache_key}: {str(e)}")
    return result


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Uses Redis SCAN to find and delete matching keys; backends without
    pattern support are cleared entirely
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")
    except NotImplementedError:
        cache.clear()
        logger.info(f"Cache backend has no pattern support, cleared cache for pattern: {pattern}")
        return
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")
        return

    try:
        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_products_cache():
    """Invalidate product lists, product details and featured products"""
    invalidate_cache_pattern(f"{PRODUCTS_PREFIX}:")
    invalidate_cache_pattern(f"{PRODUCT_PREFIX}:")
    invalidate_cache_pattern(f"{HOME_FEATURED_PREFIX}:")
    logger.info("Invalidated products cache")


def invalidate_categories_cache():
    """Invalidate category lists and category details"""
    invalidate_cache_pattern(f"{CATEGORIES_PREFIX}:")
    invalidate_cache_pattern(f"{CATEGORY_PREFIX}:")
    logger.info("Invalidated categories cache")


def invalidate_dashboard_cache():
    """Invalidate dashboard KPIs cache"""
    invalidate_cache_pattern(f"{DASHBOARD_PREFIX}:")
    logger.info("Invalidated dashboard cache")


def invalidate_shipping_cache():
    """Invalidate cached shipping zones"""
    invalidate_cache_pattern(f"{SHIPPING_PREFIX}:")
    logger.info("Invalidated shipping cache")
