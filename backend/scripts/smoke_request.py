"""Run a quick in-process smoke test against the app.

Registers a throwaway user, logs one exercise and prints each response
so a fresh checkout can be sanity-checked without starting a server.
"""

import sys
import os
import uuid

# Ensure backend folder is on sys.path so the package can be imported
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient
from exercise_tracker.main import app


def run():
    client = TestClient(app)
    health = client.get('/health')
    print('HEALTH:', health.status_code, health.json())
    created = client.post('/api/exercise/new-user', data={'username': f'smoke-{uuid.uuid4().hex[:8]}'})
    print('NEW USER:', created.status_code, created.json())
    user_id = created.json()['id']
    added = client.post('/api/exercise/add', data={'userId': user_id, 'description': 'run', 'duration': '30'})
    print('ADD:', added.status_code, added.json())
    log = client.get('/api/exercise/log', params={'userId': user_id})
    print('LOG:', log.status_code, log.json())


if __name__ == '__main__':
    run()
