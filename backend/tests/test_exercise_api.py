import json
import logging
from datetime import datetime, timezone

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from exercise_tracker import models
from exercise_tracker.database import engine
from exercise_tracker.main import app
from exercise_tracker.utils.dates import format_date

client = TestClient(app)


def _new_user(name):
    r = client.post('/api/exercise/new-user', data={'username': name})
    assert r.status_code == 200
    return r.json()['id']


def _all_users():
    with Session(engine) as s:
        return s.exec(select(models.User)).all()


def test_register_returns_username_and_id():
    r = client.post('/api/exercise/new-user', data={'username': 'alice'})
    assert r.status_code == 200
    body = r.json()
    assert body['username'] == 'alice'
    assert body['id']
    assert 'X-Request-ID' in r.headers


def test_register_accepts_json_body():
    r = client.post('/api/exercise/new-user', json={'username': 'jason'})
    assert r.status_code == 200
    assert r.json()['username'] == 'jason'


def test_register_empty_username_creates_nothing():
    r = client.post('/api/exercise/new-user', data={'username': ''})
    assert r.status_code == 400
    assert r.json() == 'Please enter a valid username.'
    assert _all_users() == []


def test_register_twice_keeps_one_record():
    _new_user('bob')
    r = client.post('/api/exercise/new-user', data={'username': 'bob'})
    assert r.status_code == 409
    assert r.json() == 'Username already taken...'
    assert len([u for u in _all_users() if u.username == 'bob']) == 1


def test_add_to_unknown_user_mutates_nothing():
    _new_user('carol')
    r = client.post('/api/exercise/add', data={'userId': 'nobody', 'description': 'run', 'duration': '30'})
    assert r.status_code == 404
    assert r.json() == {'msg': 'No user found...'}
    assert all(u.count == 0 for u in _all_users())


def test_add_missing_fields():
    uid = _new_user('dave')
    r = client.post('/api/exercise/add', data={'userId': uid})
    assert r.status_code == 400
    assert r.json() == {'Missing': ['Description', 'Duration']}
    r = client.post('/api/exercise/add', data={'userId': uid, 'description': 'swim'})
    assert r.json() == {'Missing': ['Duration']}


def test_description_length_limit():
    uid = _new_user('erin')
    too_long = client.post('/api/exercise/add', data={'userId': uid, 'description': 'd' * 49, 'duration': '10'})
    assert too_long.status_code == 400
    assert too_long.json() == {'Error': ['Description is too long']}
    ok = client.post('/api/exercise/add', data={'userId': uid, 'description': 'd' * 48, 'duration': '10'})
    assert ok.status_code == 200


def test_add_reports_all_errors_together():
    uid = _new_user('frank')
    r = client.post('/api/exercise/add', data={
        'userId': uid, 'description': 'd' * 60, 'duration': '1.5', 'date': 'someday'})
    assert r.status_code == 400
    assert r.json() == {'Error': [
        'Description is too long',
        'Duration should be number only',
        'Date entry is invalid',
    ]}


def test_add_increments_count_by_one():
    uid = _new_user('gina')
    r = client.post('/api/exercise/add', json={'userId': uid, 'description': 'row', 'duration': 25, 'date': '2024-01-01'})
    assert r.status_code == 200
    assert r.json() == {
        'username': 'gina', 'id': uid, 'description': 'row', 'duration': '25', 'date': 'Jan 1st 2024 Monday'}
    user = next(u for u in _all_users() if u.user_id == uid)
    assert user.count == 1
    log = client.get('/api/exercise/log', params={'userId': uid}).json()
    assert log['count'] == 1


def test_log_from_to_filters_and_sorts():
    uid = _new_user('hank')
    for d in ['2024-01-10', '2024-01-01', '2024-01-05', '2024-01-20', '2024-01-15']:
        client.post('/api/exercise/add', data={'userId': uid, 'description': d, 'duration': '5', 'date': d})
    r = client.get('/api/exercise/log', params={'userId': uid, 'from': '2024-01-05', 'to': '2024-01-15'})
    assert r.status_code == 200
    body = r.json()
    assert [e['description'] for e in body['log']] == ['2024-01-05', '2024-01-10', '2024-01-15']
    assert body['count'] == 3


def test_log_limit_after_sorting():
    uid = _new_user('ivy')
    for d in ['2024-02-05', '2024-02-01', '2024-02-04', '2024-02-02', '2024-02-03']:
        client.post('/api/exercise/add', data={'userId': uid, 'description': d, 'duration': '5', 'date': d})
    body = client.get('/api/exercise/log', params={'userId': uid, 'limit': '2'}).json()
    assert [e['description'] for e in body['log']] == ['2024-02-01', '2024-02-02']
    assert body['count'] == 2
    unlimited = client.get('/api/exercise/log', params={'userId': uid, 'limit': 'lots'}).json()
    assert unlimited['count'] == 5


def test_log_unknown_user_and_bad_bound():
    r = client.get('/api/exercise/log', params={'userId': 'ghost'})
    assert r.status_code == 404
    assert r.json() == 'No user with that ID is found.'
    uid = _new_user('jack')
    bad = client.get('/api/exercise/log', params={'userId': uid, 'to': 'whenever'})
    assert bad.status_code == 400


def test_end_to_end_default_date():
    uid = _new_user('alice')
    added = client.post('/api/exercise/add', data={'userId': uid, 'description': 'run', 'duration': '30'})
    assert added.status_code == 200
    today = format_date(datetime.now(timezone.utc))
    assert added.json()['date'] == today
    log = client.get('/api/exercise/log', params={'userId': uid}).json()
    assert log == {
        'username': 'alice',
        'id': uid,
        'count': 1,
        'log': [{'description': 'run', 'duration': '30', 'date': today}],
    }


def test_schema_errors_are_plain_text_400():
    uid = _new_user('kate')
    r = client.post('/api/exercise/add', json={'userId': uid, 'description': ['a'], 'duration': '5'})
    assert r.status_code == 400
    assert r.headers['content-type'].startswith('text/plain')
    assert 'description' in r.text
    bad_json = client.post('/api/exercise/new-user', content=b'{nope', headers={'Content-Type': 'application/json'})
    assert bad_json.status_code == 400


def test_unmatched_route_is_plain_not_found():
    r = client.get('/api/exercise/unknown')
    assert r.status_code == 404
    assert r.text == 'not found'


def test_unhandled_errors_become_500_text(monkeypatch):
    def boom(self, username):
        raise RuntimeError('store unavailable')

    monkeypatch.setattr('exercise_tracker.services.UserService.register', boom)
    lenient = TestClient(app, raise_server_exceptions=False)
    r = lenient.post('/api/exercise/new-user', data={'username': 'zed'})
    assert r.status_code == 500
    assert r.text == 'store unavailable'


def test_home_and_health():
    assert client.get('/health').json() == {'status': 'ok'}
    home = client.get('/')
    assert home.status_code == 200
    assert '/api/exercise/new-user' in home.text


def test_register_null_username_is_blank():
    r = client.post('/api/exercise/new-user', json={'username': None})
    assert r.status_code == 400
    assert r.json() == 'Please enter a valid username.'
    assert _all_users() == []


def test_add_date_past_calendar_edge_is_invalid():
    uid = _new_user('leo')
    r = client.post('/api/exercise/add', data={
        'userId': uid, 'description': 'late', 'duration': '5', 'date': '9999-12-31T23:00:00-05:00'})
    assert r.status_code == 400
    assert r.json() == {'Error': ['Date entry is invalid']}
    bound = client.get('/api/exercise/log', params={'userId': uid, 'from': '0001-01-01T00:00:00+05:00'})
    assert bound.status_code == 400


def test_log_from_with_time_of_day():
    uid = _new_user('mia')
    client.post('/api/exercise/add', data={
        'userId': uid, 'description': 'morning', 'duration': '1', 'date': '2024-01-01T08:00:00'})
    body = client.get('/api/exercise/log', params={'userId': uid, 'from': '2024-01-01T12:00:00'}).json()
    assert body['count'] == 0
    assert body['log'] == []


def test_api_requests_are_access_logged(caplog):
    caplog.set_level(logging.INFO, logger='exercise_tracker.api')
    r = client.post('/api/exercise/new-user', data={'username': 'nia'}, headers={'X-Request-ID': 'req-42'})
    assert r.headers['X-Request-ID'] == 'req-42'
    records = [rec.getMessage() for rec in caplog.records if rec.getMessage().startswith('request_done ')]
    assert records
    logged = json.loads(records[-1].split(' ', 1)[1])
    assert logged['request_id'] == 'req-42'
    assert logged['path'] == '/api/exercise/new-user'
    assert logged['status_code'] == 200
