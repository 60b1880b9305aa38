"""
Activity log for the classroom tools.

Every data change is echoed to stdout and kept in the activity_log table.
Only the newest MAX_LOG_ENTRIES entries are retained.
"""

from datetime import datetime
from .config import MAX_LOG_ENTRIES
from .models import get_session, ActivityLog


def add_log(action: str, details: str) -> ActivityLog:
    """Record an action and print it."""
    session = get_session()

    entry = ActivityLog(timestamp=datetime.utcnow(), action=action, details=details)
    session.add(entry)
    session.flush()

    # Trim anything older than the newest MAX_LOG_ENTRIES
    stale = session.query(ActivityLog).order_by(
        ActivityLog.timestamp.desc(), ActivityLog.id.desc()
    ).offset(MAX_LOG_ENTRIES).all()
    for old in stale:
        session.delete(old)

    session.commit()
    session.close()

    print(f"[{entry.timestamp.isoformat()}] {action}: {details}")
    return entry


def get_logs(limit: int = MAX_LOG_ENTRIES) -> list[dict]:
    """Get log entries, newest first."""
    session = get_session()

    entries = session.query(ActivityLog).order_by(
        ActivityLog.timestamp.desc(), ActivityLog.id.desc()
    ).limit(limit).all()

    result = [{
        "timestamp": e.timestamp.isoformat(),
        "action": e.action,
        "details": e.details
    } for e in entries]

    session.close()
    return result


def clear_logs() -> int:
    """Delete all log entries. Returns the number removed."""
    session = get_session()
    count = session.query(ActivityLog).delete()
    session.commit()
    session.close()
    return count
