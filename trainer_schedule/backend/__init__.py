from trainer_schedule.backend.errors import BackendError, NotFoundError
from trainer_schedule.backend.memory import InMemoryStore
from trainer_schedule.backend.realtime import (
    ChangeEvent,
    ChangeFeed,
    ChangeType,
    RealtimeDecision,
    Subscription,
    decide,
)
from trainer_schedule.backend.rest_client import SupabaseRestClient

__all__ = [
    "BackendError",
    "NotFoundError",
    "InMemoryStore",
    "SupabaseRestClient",
    "ChangeEvent",
    "ChangeFeed",
    "ChangeType",
    "RealtimeDecision",
    "Subscription",
    "decide",
]
