import os


def _origins(value):
    value = (value or '').strip()
    if not value or value == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    DATABASE_PATH = os.environ.get('DATABASE_PATH', './data/game.db')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or f"sqlite:///{os.path.abspath(DATABASE_PATH)}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Browser origins allowed for HTTP and Socket.IO ('*' or comma separated)
    CORS_ORIGINS = _origins(os.environ.get('CORS_ORIGINS', '*'))
    # Join codes
    GAME_CODE_LENGTH = int(os.environ.get('GAME_CODE_LENGTH', '6'))
    CODE_MAX_ATTEMPTS = int(os.environ.get('CODE_MAX_ATTEMPTS', '10'))
    INITIAL_TEAM_SCORE = int(os.environ.get('INITIAL_TEAM_SCORE', '100'))
    # Default page size for team chat history
    MESSAGE_HISTORY_LIMIT = int(os.environ.get('MESSAGE_HISTORY_LIMIT', '50'))
    PORT = int(os.environ.get('PORT', '3001'))
