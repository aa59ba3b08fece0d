import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from use_cases.session_models import OtpChallenge

log = logging.getLogger(__name__)

CODE_MIN = 100_000
CODE_MAX = 999_999


def generate_code() -> str:
    """Uniform 6-digit code in [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


class OtpGenerator:
    """
    Holds at most one pending OtpChallenge.

    `ttl_seconds` and `max_attempts` are off by default: a pending code never
    expires and wrong guesses are not counted.
    """

    def __init__(self, ttl_seconds: Optional[int] = None, max_attempts: Optional[int] = None, clock=datetime.utcnow):
        self._pending: Optional[OtpChallenge] = None
        self._failed_attempts = 0
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds else None
        self._max_attempts = max_attempts
        self._clock = clock

    @property
    def pending(self) -> Optional[OtpChallenge]:
        return self._pending

    def issue(self, email: str, display_name: str) -> OtpChallenge:
        challenge = OtpChallenge(
            target_email=email,
            display_name=display_name,
            code=generate_code(),
            issued_at=self._clock(),
        )
        if self._pending is not None:
            log.info("Replacing pending passcode challenge for %s", self._pending.target_email)
        self._pending = challenge
        self._failed_attempts = 0
        return challenge

    def is_pending(self, challenge: Optional[OtpChallenge]) -> bool:
        return challenge is not None and challenge is self._pending

    def _is_expired(self, challenge: OtpChallenge) -> bool:
        return self._ttl is not None and self._clock() - challenge.issued_at > self._ttl

    def verify(self, candidate: str, challenge: Optional[OtpChallenge]) -> bool:
        if not self.is_pending(challenge):
            return False
        if self._is_expired(challenge):
            log.info("Passcode challenge for %s expired", challenge.target_email)
            return False
        if self._max_attempts is not None and self._failed_attempts >= self._max_attempts:
            log.warning("Passcode challenge for %s is locked after %s failed attempts",
                        challenge.target_email, self._failed_attempts)
            return False

        if not isinstance(candidate, str):
            matched = False
        else:
            matched = hmac.compare_digest(candidate.encode("utf-8"), challenge.code.encode("utf-8"))
        if not matched:
            self._failed_attempts += 1
        return matched

    def consume(self) -> Optional[OtpChallenge]:
        challenge, self._pending = self._pending, None
        self._failed_attempts = 0
        return challenge

    def discard(self) -> None:
        self.consume()
