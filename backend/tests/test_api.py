import uuid

from padel_score.errors import StoreUnavailable
from padel_score.services.matches import MatchOrchestrator


def _create(client, user_id='u1', **extra):
    body = {'userId': user_id, 'mode': 'singles', 'goldenPoint': False, 'players': ['A', 'B']}
    body.update(extra)
    return client.post('/matches', json=body)


def test_index_and_health(client):
    assert client.get('/').status_code == 200
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == 'OK'


def test_create_then_existing(client):
    res = _create(client)
    assert res.status_code == 201
    created = res.get_json()
    assert created['status'] == 'LIVE'
    assert created['version'] == 0
    assert created['state']['players'] == ['A', 'B']
    assert res.headers['Location'].endswith(f"/matches/{created['matchId']}")

    res = _create(client)
    assert res.status_code == 200
    assert res.get_json()['matchId'] == created['matchId']


def test_create_requires_user_id(client):
    res = client.post('/matches', json={'mode': 'singles'})
    assert res.status_code == 400
    assert 'userId' in res.get_json()['error']


def test_create_rejects_non_object_body(client):
    res = client.post('/matches', data='not json', content_type='application/json')
    assert res.status_code == 400
    res = client.post('/matches', json=['u1'])
    assert res.status_code == 400


def test_get_active(client):
    assert client.get('/matches/active?userId=u1').status_code == 404
    assert client.get('/matches/active').status_code == 400
    match_id = _create(client).get_json()['matchId']
    res = client.get('/matches/active?userId=u1')
    assert res.status_code == 200
    assert res.get_json()['matchId'] == match_id


def test_end_to_end_scoring_scenario(client):
    match = _create(client).get_json()
    match_id = match['matchId']
    assert match['version'] == 0

    res = client.put(f'/matches/{match_id}/point', json={
        'userId': 'u1', 'winner': 'A', 'expectedVersion': 0, 'newState': {'points': ['A']},
    })
    assert res.status_code == 200
    assert res.get_json()['version'] == 1

    res = client.put(f'/matches/{match_id}/point', json={
        'userId': 'u1', 'winner': 'B', 'expectedVersion': 0, 'newState': {'points': ['B']},
    })
    assert res.status_code == 409
    conflict = res.get_json()
    assert conflict['error'] == 'Version conflict'
    assert conflict['details'] == {'currentVersion': 1, 'currentState': {'points': ['A']}}

    res = client.post(f'/matches/{match_id}/finish', json={'userId': 'u1', 'expectedVersion': 1, 'won': True})
    assert res.status_code == 200
    finished = res.get_json()
    assert finished['status'] == 'FINISHED'
    assert finished['won'] is True
    assert finished['message'] == 'Match finished successfully'

    res = client.put(f'/matches/{match_id}/point', json={
        'userId': 'u1', 'winner': 'A', 'expectedVersion': 1, 'newState': {'points': ['A', 'A']},
    })
    assert res.status_code == 409
    assert 'details' not in res.get_json()

    events = client.get(f'/matches/{match_id}/events?userId=u1').get_json()['events']
    assert [(e['seq'], e['eventType']) for e in events] == [(1, 'START'), (2, 'POINT'), (3, 'MATCH_END')]


def test_undo_and_state_endpoints(client):
    match_id = _create(client).get_json()['matchId']
    res = client.post(f'/matches/{match_id}/undo', json={'userId': 'u1', 'expectedVersion': 0, 'newState': {'undone': True}})
    assert res.status_code == 200
    assert res.get_json()['version'] == 1

    res = client.put(f'/matches/{match_id}/state', json={'userId': 'u1', 'expectedVersion': 1, 'state': {'manual': 1}})
    assert res.status_code == 200
    body = res.get_json()
    assert body['version'] == 2
    assert body['state'] == {'manual': 1}


def test_other_user_is_forbidden(client):
    match_id = _create(client).get_json()['matchId']
    res = client.put(f'/matches/{match_id}/state', json={'userId': 'u2', 'expectedVersion': 0, 'state': {}})
    assert res.status_code == 403
    res = client.get(f'/matches/{match_id}/events?userId=u2')
    assert res.status_code == 403


def test_unknown_match_is_404(client):
    res = client.post(f'/matches/{uuid.uuid4()}/undo', json={'userId': 'u1', 'expectedVersion': 0, 'newState': {}})
    assert res.status_code == 404
    assert 'error' in res.get_json()


def test_malformed_match_id_is_json_404(client):
    _create(client)
    res = client.put('/matches/not-a-uuid/point', json={
        'userId': 'u1', 'winner': 'A', 'expectedVersion': 0, 'newState': {},
    })
    assert res.status_code == 404
    assert res.is_json
    assert res.get_json() == {'error': 'Not found'}

    res = client.get('/matches/12345/events?userId=u1')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Not found'}


def test_malformed_mutations_are_400(client):
    match_id = _create(client).get_json()['matchId']
    bad_bodies = [
        {'userId': 'u1', 'winner': 'A', 'expectedVersion': '0', 'newState': {}},
        {'userId': 'u1', 'winner': 'A', 'expectedVersion': -1, 'newState': {}},
        {'userId': 'u1', 'winner': 'A', 'expectedVersion': True, 'newState': {}},
        {'userId': 'u1', 'winner': 'A', 'expectedVersion': 0, 'newState': 'score'},
        {'userId': 'u1', 'expectedVersion': 0, 'newState': {}},
        {'winner': 'A', 'expectedVersion': 0, 'newState': {}},
    ]
    for body in bad_bodies:
        res = client.put(f'/matches/{match_id}/point', json=body)
        assert res.status_code == 400, body
    res = client.post(f'/matches/{match_id}/finish', json={'userId': 'u1', 'won': 'yes'})
    assert res.status_code == 400
    # Nothing was applied
    assert client.get('/matches/active?userId=u1').get_json()['version'] == 0


def test_finish_with_stale_final_state(client):
    match_id = _create(client).get_json()['matchId']
    client.put(f'/matches/{match_id}/state', json={'userId': 'u1', 'expectedVersion': 0, 'state': {'s': 1}})
    res = client.post(f'/matches/{match_id}/finish', json={
        'userId': 'u1', 'won': False, 'expectedVersion': 0, 'finalState': {'s': 'final'},
    })
    assert res.status_code == 409
    assert res.get_json()['details']['currentVersion'] == 1
    assert client.get('/matches/active?userId=u1').status_code == 200


def test_abandon_active_match(client):
    _create(client)
    assert client.delete('/matches/active?userId=u1').status_code == 204
    assert client.get('/matches/active?userId=u1').status_code == 404
    assert client.delete('/matches/active?userId=u1').status_code == 204
    assert _create(client).status_code == 201


def test_upsert_user(client):
    res = client.post('/users/u1', json={'name': 'Ana', 'email': 'ana@example.com'})
    assert res.status_code == 200
    assert res.get_json() == {'id': 'u1', 'name': 'Ana', 'email': 'ana@example.com'}

    res = client.post('/users/u1', json={'name': 'Ana P.', 'email': 'ana@example.com'})
    assert res.get_json()['name'] == 'Ana P.'

    res = client.post('/users/u2', json={'name': 'Bea', 'email': 'ana@example.com'})
    assert res.status_code == 409
    assert res.get_json() == {'error': 'Email already exists'}

    assert client.post('/users/u3', json={'name': 5}).status_code == 400


def test_store_unavailable_is_503(client, monkeypatch):
    def unavailable(self, owner_id):
        raise StoreUnavailable('connection refused')

    monkeypatch.setattr(MatchOrchestrator, 'get_active', unavailable)
    res = client.get('/matches/active?userId=u1')
    assert res.status_code == 503
    assert res.get_json() == {'error': 'Storage backend unavailable'}
