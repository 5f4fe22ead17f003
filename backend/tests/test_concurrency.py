import os
import threading

import pytest

from battle import create_app, db


@pytest.fixture()
def file_app(tmp_path):
    class FileDbConfig:
        TESTING = True
        SECRET_KEY = 'test-secret'
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{os.path.join(tmp_path, 'game.db')}"
        SQLALCHEMY_TRACK_MODIFICATIONS = False
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'timeout': 30, 'check_same_thread': False}}
        CORS_ORIGINS = '*'

    application = create_app(FileDbConfig)
    with application.app_context():
        import battle.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def test_parallel_score_updates_are_not_lost(file_app):
    coordinator = file_app.extensions['battle']
    with file_app.app_context():
        code = coordinator.create_game({'teamCount': 2})['code']
        team1, team2 = sorted(coordinator.registry.get(code).teams)

    workers = 4
    rounds = 20
    deltas = [10, -3]
    start = threading.Barrier(workers)
    errors = []

    def worker(index):
        points = deltas[index % len(deltas)]
        start.wait()
        for _ in range(rounds):
            with file_app.app_context():
                try:
                    coordinator.update_score(team1, points)
                except Exception as exc:
                    errors.append(exc)
                finally:
                    db.session.remove()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    expected = 100 + sum(deltas[i % len(deltas)] * rounds for i in range(workers))
    with file_app.app_context():
        teams = {t['id']: t['score'] for t in coordinator.get_game(code)['teams']}
    assert teams == {team1: expected, team2: 100}
