from typing import Any, Dict, Protocol

NAMESPACE = '/ws'


def room_for(code: str) -> str:
    return f"game:{code}"


class Notifier(Protocol):
    """Outbound side of the game services; implemented by the transport."""

    def send_to_player(self, code: str, player_id: str, event: str, payload: Dict[str, Any]) -> None:
        ...

    def broadcast(self, code: str, event: str, payload: Dict[str, Any]) -> None:
        ...


class SocketIONotifier:
    """Delivers game events over Flask-SocketIO.

    A player's sid is looked up at send time so messages follow reconnects.
    """

    def __init__(self, socketio, store, namespace=NAMESPACE):
        self.socketio = socketio
        self.store = store
        self.namespace = namespace

    def send_to_player(self, code, player_id, event, payload):
        session = self.store.get(code)
        player = session.player(player_id) if session else None
        if player is None or not player.sid:
            return
        self.socketio.emit(event, payload, to=player.sid, namespace=self.namespace)

    def broadcast(self, code, event, payload):
        self.socketio.emit(event, payload, to=room_for(code), namespace=self.namespace)
