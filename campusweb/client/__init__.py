from .api import FeedbackClient
from .poller import ThreadPoller
from .schemas import MalformedResponse
from .session import ClientSession
from .storage import TTLStore

__all__ = [
    "ClientSession",
    "FeedbackClient",
    "MalformedResponse",
    "TTLStore",
    "ThreadPoller",
]
