"""In-chat arithmetic challenge used as the widget's verification collaborator."""

import hashlib
import hmac
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass

from discord.ext import commands

_FALLBACK_KEY = "slack-feedback"


@dataclass(frozen=True, slots=True)
class Challenge:
    left: int
    right: int
    nonce: str

    @property
    def question(self) -> str:
        return f"What is {self.left} + {self.right}?"

    @property
    def answer(self) -> int:
        return self.left + self.right


class ChallengeVerifier:
    """Verifier that asks a small sum and issues an HMAC token once it is answered.

    ``is_ready`` follows the bot's readiness, so the widget mounts the challenge
    only once the gateway connection is up.
    """

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self.site_key = ""
        self.challenge: Challenge | None = None
        self._callback: Callable[[], None] | None = None
        self._token = ""
        self.log = logging.getLogger(__name__)

    @property
    def rendered(self) -> bool:
        return self._callback is not None

    def is_ready(self) -> bool:
        return self.bot.is_ready()

    def render(self, site_key: str, callback: Callable[[], None]) -> None:
        self.site_key = site_key
        self._callback = callback
        self._new_challenge()

    def get_response(self) -> str:
        """The signed token for the current challenge, or ``""`` if it does not check out."""
        return self._token if self.check_token(self._token) else ""

    def reset(self) -> None:
        self._token = ""
        if self.rendered:
            self._new_challenge()

    def solve(self, answer: str) -> bool:
        """Check ``answer``; on success store a token and notify the widget."""
        if self.challenge is None or self._callback is None:
            return False

        try:
            correct = int(answer) == self.challenge.answer
        except ValueError:
            correct = False

        if not correct:
            self.log.debug("Challenge answered incorrectly")
            self._new_challenge()
            return False

        self._token = self._sign(self.challenge.nonce)
        self._callback()
        return True

    def check_token(self, token: str) -> bool:
        """Whether ``token`` is the response issued for the current challenge."""
        if not token or self.challenge is None:
            return False
        return hmac.compare_digest(token, self._sign(self.challenge.nonce))

    def _sign(self, nonce: str) -> str:
        key = (self.site_key or _FALLBACK_KEY).encode()
        return hmac.new(key, nonce.encode(), hashlib.sha256).hexdigest()

    def _new_challenge(self) -> None:
        self.challenge = Challenge(
            left=secrets.randbelow(10) + 1,
            right=secrets.randbelow(10) + 1,
            nonce=secrets.token_hex(16),
        )
