from pricecheck.db.database import get_session, init_db
from pricecheck.db.operations import get_snapshot, load_snapshot, save_snapshot

__all__ = [
    "get_session",
    "get_snapshot",
    "init_db",
    "load_snapshot",
    "save_snapshot",
]
