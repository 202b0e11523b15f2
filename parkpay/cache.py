"""Optional Redis layer: short-lived listing snapshots and request counters.

Everything here degrades to a no-op when the app runs without Redis.
"""
import json

from flask import current_app
from redis import Redis
from redis.exceptions import RedisError

COUNTER_PREFIX = 'parkpay:counters'
COUNTERS = (
    'total_api_calls',
    'users_created',
    'parking_spots_created',
    'reservations_created',
    'payments_completed',
    'deposits',
    'withdrawals',
)


def connect_redis(url):
    """Return a live Redis client, or None when the server is unreachable."""
    try:
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        client.ping()
        print(f"✅ Connected to Redis at {url}")
        return client
    except RedisError as e:
        print(f"⚠️ Redis connection failed: {e}")
        print("Application will continue without Redis caching")
        return None


def get_redis_client():
    """Get Redis client from Flask app context"""
    return getattr(current_app, 'redis_client', None)


class ListingCache:
    """Successful listing responses for one table, keyed per query.

    Keys look like ``<namespace>:<query>`` so a write to the table can drop
    every cached view of it at once.
    """

    def __init__(self, namespace, ttl):
        self.namespace = namespace
        self.ttl = ttl

    def key(self, query):
        return f'{self.namespace}:{query}'

    def load(self, query):
        client = get_redis_client()
        if not client:
            return None
        try:
            raw = client.get(self.key(query))
        except RedisError as e:
            print(f"⚠️ Could not read {self.key(query)} from cache: {e}")
            return None
        return json.loads(raw) if raw else None

    def save(self, query, response):
        client = get_redis_client()
        if not client:
            return False
        try:
            client.setex(self.key(query), self.ttl, json.dumps(response))
        except RedisError as e:
            print(f"⚠️ Could not cache {self.key(query)}: {e}")
            return False
        return True

    def invalidate(self):
        """Drop every cached view; returns how many keys were removed."""
        client = get_redis_client()
        if not client:
            return 0
        try:
            keys = list(client.scan_iter(match=f'{self.namespace}:*'))
            return client.delete(*keys) if keys else 0
        except RedisError as e:
            print(f"⚠️ Could not clear {self.namespace} cache: {e}")
            return 0


def count_event(name):
    client = get_redis_client()
    if not client:
        return 0
    try:
        return client.incr(f'{COUNTER_PREFIX}:{name}')
    except RedisError as e:
        print(f"⚠️ Counter {name} not updated: {e}")
        return 0


def read_counters():
    client = get_redis_client()
    if not client:
        return {}
    return {name: int(client.get(f'{COUNTER_PREFIX}:{name}') or 0) for name in COUNTERS}
