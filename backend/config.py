import os


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Phase timers (seconds)
    ANSWER_DURATION_SEC = float(os.environ.get('ANSWER_DURATION_SEC', '45'))
    DELIBERATION_DURATION_SEC = float(os.environ.get('DELIBERATION_DURATION_SEC', '30'))
    RESULTS_PAUSE_SEC = float(os.environ.get('RESULTS_PAUSE_SEC', '6'))
    # Game length
    TIER_COUNT = int(os.environ.get('TIER_COUNT', '3'))
    QUESTIONS_PER_TIER = int(os.environ.get('QUESTIONS_PER_TIER', '3'))
    # Lobby limits
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '1'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '6'))
    GAME_CODE_LENGTH = int(os.environ.get('GAME_CODE_LENGTH', '6'))
    # Text limits
    ANSWER_MAX_LEN = int(os.environ.get('ANSWER_MAX_LEN', '120'))
    CHAT_MAX_LEN = int(os.environ.get('CHAT_MAX_LEN', '200'))
    # Whether a reconnecting player may keep answering the round in flight
    REJOIN_ACTIVE_ROUND = _env_flag('REJOIN_ACTIVE_ROUND', True)
    # Optional JSON file replacing the built-in question bank
    QUESTIONS_PATH = os.environ.get('QUESTIONS_PATH')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
