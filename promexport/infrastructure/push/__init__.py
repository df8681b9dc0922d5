"""HTTP push transport."""

from promexport.infrastructure.push.dispatcher import (
    DEFAULT_PUSH_TIMEOUT_SECONDS,
    PushDispatcher,
)

__all__: list[str] = ["DEFAULT_PUSH_TIMEOUT_SECONDS", "PushDispatcher"]
