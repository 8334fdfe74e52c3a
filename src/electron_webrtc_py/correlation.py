from typing import Any, Callable, Dict, Tuple

from electron_webrtc_py.daemon import Daemon
from electron_webrtc_py.logger import logger
from electron_webrtc_py.utils.random_token import random_token

SuccessCallback = Callable[[Any], None]
FailureCallback = Callable[[Any], None]


class CorrelationRegistry:
    """Matches out-of-band completion messages to the callers that issued them.

    Every remote operation embeds a token; the remote side reports completion
    as a message whose topic is that token and whose payload is either
    ``{"result": ...}`` or ``{"error": ...}``. Each token resolves at most once.
    There is no timeout: a completion that never arrives leaves its callbacks
    pending forever, so callers needing a bound wrap the await themselves
    (``asyncio.wait_for``).
    """

    def __init__(self, daemon: Daemon):
        self._daemon = daemon
        self._pending: Dict[str, Tuple[SuccessCallback, FailureCallback, Callable]] = {}

    @property
    def pending(self) -> int:
        return len(self._pending)

    def issue(self) -> str:
        token = random_token()
        while token in self._pending:
            token = random_token()
        return token

    def register(self, token: str, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        listener = lambda payload: self.resolve(token, payload)
        self._pending[token] = (on_success, on_failure, listener)
        self._daemon.once(token, listener)

    def resolve(self, token: str, payload: Dict[str, Any]) -> None:
        callbacks = self._pending.pop(token, None)
        if callbacks is None:
            logger.debug(f"Ignoring completion for unknown request {token}")
            return

        on_success, on_failure, listener = callbacks
        # Still subscribed when resolved directly rather than through the daemon.
        if listener in self._daemon.listeners(token):
            self._daemon.remove_listener(token, listener)
        payload = payload or {}
        if payload.get('error'):
            on_failure(payload['error'])
        else:
            on_success(payload.get('result'))
