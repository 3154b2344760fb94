import logging
from typing import Any, Dict

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from fakeout import get_engine, socketio
from fakeout.errors import GameError, InvalidRequest
from fakeout.services.games.notifier import NAMESPACE, room_for
from fakeout.store import normalize_code

log = logging.getLogger(__name__)

# sid -> {'game_code': ..., 'player_id': ...}
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _broadcast_roster(session, event='playerListUpdate') -> None:
    socketio.emit(event, session.roster_dict(), to=room_for(session.code), namespace=NAMESPACE)


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx or not ctx.get('player_id'):
        return
    store = get_engine().store
    session = store.get(ctx['game_code'])
    player = session.player(ctx['player_id']) if session else None
    # Already reconnected on a newer socket
    if player is None or player.sid != _get_sid():
        return
    session = store.disconnect(session.code, player.id)
    if session is not None and store.get(session.code) is not None:
        _broadcast_roster(session)
        _broadcast_roster(session, 'updatePlayers')


def handle_create_game(data=None):
    session = get_engine().store.create()
    join_room(room_for(session.code))
    _sid_to_ctx[_get_sid()] = {'game_code': session.code}
    emit('gameCreated', {'code': session.code})


def handle_check_game_code(data):
    code = normalize_code(data.get('code') if isinstance(data, dict) else data)
    session = get_engine().store.get(code)
    if session is not None and session.status == 'lobby':
        emit('gameCodeValid', session.code)
    else:
        emit('errorMessage', 'Invalid or already started game.')


def handle_join_game(data):
    data = _payload(data)
    player = _payload(data.get('player'))
    store = get_engine().store
    try:
        session = store.require(data.get('code'))
        was_hosted = session.host_id is not None
        joined = store.join(session.code, player.get('id'), player.get('name'),
                            avatar=player.get('avatar'), sid=_get_sid())
    except GameError as exc:
        emit('errorMessage', exc.message)
        return
    join_room(room_for(session.code))
    _sid_to_ctx[_get_sid()] = {'game_code': session.code, 'player_id': joined.id}
    if not was_hosted:
        socketio.emit('hostAssigned', session.host_id, to=room_for(session.code), namespace=NAMESPACE)
    _broadcast_roster(session)


def handle_join_lobby(data):
    session = get_engine().store.get(_payload(data).get('code'))
    if session is None:
        emit('errorMessage', 'Lobby not found.')
        return
    join_room(room_for(session.code))
    emit('lobbyState', session.roster_dict())


def handle_join_game_room(data):
    data = _payload(data)
    store = get_engine().store
    session = store.get(data.get('code'))
    if session is None:
        return
    join_room(room_for(session.code))
    player = store.reconnect(session.code, data.get('playerId'), _get_sid())
    if player is None:
        return
    _sid_to_ctx[_get_sid()] = {'game_code': session.code, 'player_id': player.id}
    _broadcast_roster(session, 'updatePlayers')


def handle_leave_game(data):
    data = _payload(data)
    ctx = _sid_to_ctx.pop(_get_sid(), None) or {}
    store = get_engine().store
    session = store.get(data.get('code') or ctx.get('game_code'))
    if session is None:
        return
    leave_room(room_for(session.code))
    emit('left', {'room': room_for(session.code)})
    if ctx.get('player_id'):
        store.disconnect(session.code, ctx['player_id'])
        if store.get(session.code) is not None:
            _broadcast_roster(session)


def handle_is_game_host(data):
    data = _payload(data)
    session = get_engine().store.get(data.get('code'))
    if session is None:
        emit('errorMessage', 'Game not found.')
        return
    player = data.get('player')
    if isinstance(player, dict):
        player = player.get('id')
    emit('isHost' if player and player == session.host_id else 'notHost')


def handle_start_game(data):
    data = _payload(data)
    ctx = _sid_to_ctx.get(_get_sid(), {})
    player_id = data.get('playerId') or ctx.get('player_id')
    try:
        if not player_id:
            raise InvalidRequest('Join the game before starting it.')
        get_engine().start(data.get('code'), player_id)
    except GameError as exc:
        log.info(f"[start-rejected] game={data.get('code')} player={player_id} reason={exc.message!r}")
        emit('errorMessage', exc.message)


def handle_submit_answer(data):
    data = _payload(data)
    get_engine().record_answer(data.get('code'), data.get('playerId'), data.get('answer'))


def handle_submit_vote(data):
    data = _payload(data)
    get_engine().record_vote(data.get('code'), data.get('voterId'), data.get('votedForId'))


def handle_chat_message(data):
    data = _payload(data)
    session = get_engine().store.get(data.get('code'))
    text = data.get('text')
    if session is None or not isinstance(text, str) or not text.strip():
        return
    limit = int(current_app.config.get('CHAT_MAX_LEN', 200))
    socketio.emit('chatMessage', {
        'name': str(data.get('name') or 'Anonymous')[:64],
        'text': text.strip()[:limit],
    }, to=room_for(session.code), namespace=NAMESPACE)


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('createGame', handle_create_game, namespace=NAMESPACE)
    socketio.on_event('checkGameCode', handle_check_game_code, namespace=NAMESPACE)
    socketio.on_event('joinGame', handle_join_game, namespace=NAMESPACE)
    socketio.on_event('joinLobby', handle_join_lobby, namespace=NAMESPACE)
    socketio.on_event('joinGameRoom', handle_join_game_room, namespace=NAMESPACE)
    socketio.on_event('leaveGame', handle_leave_game, namespace=NAMESPACE)
    socketio.on_event('isGameHost', handle_is_game_host, namespace=NAMESPACE)
    socketio.on_event('startGame', handle_start_game, namespace=NAMESPACE)
    socketio.on_event('submitAnswer', handle_submit_answer, namespace=NAMESPACE)
    socketio.on_event('submitVote', handle_submit_vote, namespace=NAMESPACE)
    socketio.on_event('chatMessage', handle_chat_message, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
