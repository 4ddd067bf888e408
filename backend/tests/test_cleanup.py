from datetime import datetime, timedelta

from aceprep.cleanup import purge_stale_sessions
from aceprep.models import AuthSession
from aceprep.settings import settings


def test_purges_only_idle_sessions(db):
    now = datetime(2024, 6, 1)
    retention = timedelta(days=settings.session_retention_days)
    db.add(AuthSession(session_id="old", username="alice", last_activity_at=now - retention - timedelta(minutes=1)))
    db.add(AuthSession(session_id="fresh", username="alice", last_activity_at=now - timedelta(days=1)))
    db.commit()

    assert purge_stale_sessions(db, now=now) == 1
    assert [s.session_id for s in db.query(AuthSession).all()] == ["fresh"]
    assert purge_stale_sessions(db, now=now) == 0
