"""
Core logic for the IRC away notifier shared by the server daemon and the idle relay.
"""

from .dispatcher import NotificationDispatcher  # noqa: F401
from .errors import ConfigurationError, NotifierError  # noqa: F401
from .idle_decision import decide  # noqa: F401
from .models import IdleReading, IdleVerdict, OverrideState  # noqa: F401
from .state_store import FileStateStore, StateStore  # noqa: F401
