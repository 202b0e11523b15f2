import fnmatch

import pytest

from parkpay.cache import read_counters
from parkpay.controllers import spot_listings


class DictRedis:
    """In-process stand-in for the handful of Redis calls parkpay makes."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value

    def delete(self, *keys):
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    def scan_iter(self, match='*'):
        return [key for key in list(self.data) if fnmatch.fnmatchcase(key, match)]

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])


@pytest.fixture
def redis_stub(app):
    app.redis_client = DictRedis()
    yield app.redis_client
    app.redis_client = None


def test_spot_listings_are_cached_per_query(client, admin_headers, redis_stub):
    assert client.get('/parking-spots').status_code == 404
    assert redis_stub.scan_iter('parking_spots:*') == []

    client.post('/parking-spots', headers=admin_headers,
                json={'location': 'Dock-4', 'price_per_hour': '10', 'number_of_spots': 2})
    assert client.get('/parking-spots').status_code == 200
    assert client.get('/parking-spots/available').get_json()['count'] == 1
    assert client.get('/parking-spots/location/Dock-4').status_code == 200
    assert sorted(redis_stub.scan_iter('parking_spots:*')) == [
        'parking_spots:all', 'parking_spots:available', 'parking_spots:location:Dock-4']


def test_new_spot_drops_every_cached_listing(client, admin_headers, redis_stub):
    client.post('/parking-spots', headers=admin_headers,
                json={'location': 'Dock-4', 'price_per_hour': '10', 'number_of_spots': 2})
    client.get('/parking-spots')
    client.get('/parking-spots/available')

    client.post('/parking-spots', headers=admin_headers,
                json={'location': 'Dock-5', 'price_per_hour': '12', 'number_of_spots': 1})
    assert redis_stub.scan_iter('parking_spots:*') == []
    assert len(client.get('/parking-spots').get_json()['spots']) == 2


def test_cache_is_a_no_op_without_redis(app):
    assert spot_listings.load('all') is None
    assert spot_listings.save('all', {'msg': 'x'}) is False
    assert spot_listings.invalidate() == 0
    assert read_counters() == {}


def test_counters_track_successful_operations(client, redis_stub):
    client.post('/users', json={'username': 'dana', 'password': 'pw', 'email': 'd@x.test'})
    counters = read_counters()
    assert counters['users_created'] == 1
    assert counters['total_api_calls'] >= 1
