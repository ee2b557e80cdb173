"""Database package: connection pool, migrations and the polls repository."""

from meetpoll.db.core import (
    check_database,
    close_pool,
    get_pool_stats,
    init_pool,
)
from meetpoll.db.polls import (
    polls_create_event,
    polls_get_event_by_share_id,
    polls_get_event_snapshot,
    polls_get_time_options,
    polls_submit_availability,
)
from meetpoll.db.migrations import get_current_version

__all__ = [
    "check_database",
    "close_pool",
    "get_current_version",
    "get_pool_stats",
    "init_pool",
    "polls_create_event",
    "polls_get_event_by_share_id",
    "polls_get_event_snapshot",
    "polls_get_time_options",
    "polls_submit_availability",
]
