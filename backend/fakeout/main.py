from flask import Blueprint, jsonify

from fakeout import get_engine

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Fakeout game server!'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'sessions': len(get_engine().store)})
