"""Timeseries session ID generation. Layer 0: single dedicated function, uuid4."""

import uuid
from collections.abc import Callable
from typing import TypeAlias

SessionIdFactory: TypeAlias = Callable[[], str]


def generate_session_id() -> str:
    """Generate a new timeseries session ID. Standard UUID v4 string.

    Returns:
        New UUID string (e.g. for ts_session_id).
    """
    return str(uuid.uuid4())
