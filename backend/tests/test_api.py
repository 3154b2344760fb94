def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'Fakeout' in res.get_json()['message']


def test_create_game(client):
    res = client.post('/api/games/create')
    assert res.status_code == 201
    data = res.get_json()
    assert 'game_code' in data
    assert client.get('/health').get_json()['sessions'] == 1


def test_join_and_state(client):
    code = client.post('/api/games/create').get_json()['game_code']
    res = client.post('/api/games/join', json={'game_code': code.lower(), 'name': 'Alice', 'avatar': 'fox'})
    assert res.status_code == 201
    player = res.get_json()
    assert player['isHost'] is True
    assert player['points'] == 0

    res = client.get(f'/api/games/{code}/state')
    assert res.status_code == 200
    game = res.get_json()
    assert game['game_code'] == code
    assert game['status'] == 'lobby'
    assert game['host_id'] == player['id']
    assert game['current_round'] is None
    assert game['durations'] == {'answer': 5000, 'deliberation': 5000, 'results': 0}
    assert any(p['name'] == 'Alice' for p in game['players'])


def test_join_validation(client):
    assert client.post('/api/games/join', json={'name': 'Alice'}).status_code == 400
    res = client.post('/api/games/join', json={'game_code': 'NOPE', 'name': 'Alice'})
    assert res.status_code == 404
    assert res.get_json()['error'] == 'Game not found.'
    assert client.get('/api/games/NOPE/state').status_code == 404


def test_start_rules(client):
    code = client.post('/api/games/create').get_json()['game_code']
    # Nobody has joined yet
    assert client.post(f'/api/games/{code}/start', json={'player_id': 'x'}).status_code == 400

    host = client.post('/api/games/join', json={'game_code': code, 'name': 'Alice', 'player_id': 'alice'}).get_json()
    guest = client.post('/api/games/join', json={'game_code': code, 'name': 'Bob'}).get_json()
    assert host['id'] == 'alice'

    res = client.post(f'/api/games/{code}/start', json={'player_id': guest['id']})
    assert res.status_code == 403
    assert res.get_json()['error'] == 'Only the host may start the game.'
    assert client.post(f'/api/games/{code}/start', json={}).status_code == 400

    started = client.post(f'/api/games/{code}/start', json={'player_id': host['id']})
    assert started.status_code == 200
    assert started.get_json()['status'] == 'in_progress'

    again = client.post(f'/api/games/{code}/start', json={'player_id': host['id']})
    assert again.status_code == 403
    assert again.get_json()['error'] == 'Game has already started.'

    late = client.post('/api/games/join', json={'game_code': code, 'name': 'Cara'})
    assert late.status_code == 403
