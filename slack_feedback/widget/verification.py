"""Human-verification collaborator and its lazy, bounded mounting."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from slack_feedback.widget.timers import TimerSet

DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_MAX_ATTEMPTS = 30

_POLL_TIMER = "verifier-poll"


class Verifier(Protocol):
    """External challenge the user must pass before feedback can be sent."""

    def is_ready(self) -> bool:
        """Whether the challenge can be rendered yet."""
        ...

    def render(self, site_key: str, callback: Callable[[], None]) -> None:
        """Mount the challenge; ``callback`` runs once the user completes it."""
        ...

    def get_response(self) -> str:
        """Token proving completion, or an empty string."""
        ...

    def reset(self) -> None:
        """Require a fresh completion."""
        ...


class VerifierMount:
    """Polls the verifier until it is ready, then renders it exactly once.

    Polling stops after ``max_attempts`` checks or when ``cancel`` is called.
    """

    def __init__(  # noqa: PLR0913
        self,
        verifier: Verifier,
        timers: TimerSet,
        *,
        site_key: str,
        callback: Callable[[], None],
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)

        self.verifier = verifier
        self.site_key = site_key
        self.callback = callback
        self.interval = interval
        self.max_attempts = max_attempts
        self.attempts = 0
        self.mounted = False
        self.gave_up = False
        self._timers = timers
        self.log = logging.getLogger(__name__)

    def start(self) -> None:
        if self.mounted or self._timers.is_pending(_POLL_TIMER):
            return
        self._timers.schedule(_POLL_TIMER, self.interval, self._poll)

    def cancel(self) -> None:
        self._timers.cancel(_POLL_TIMER)

    def _poll(self) -> None:
        self.attempts += 1

        if self.verifier.is_ready():
            self.mounted = True
            self.verifier.render(self.site_key, self.callback)
            self.log.debug("Verifier rendered after %d poll(s)", self.attempts)
            return

        if self.attempts >= self.max_attempts:
            self.gave_up = True
            self.log.warning("Verifier was not ready after %d attempts, giving up", self.attempts)
            return

        self._timers.schedule(_POLL_TIMER, self.interval, self._poll)
