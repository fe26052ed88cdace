"""Configuration for SCM API clients."""

from __future__ import annotations

import dataclasses
import math
import os

from .errors import SCMConfigError
from .logging import configure_logging, get_logger, log_warning

logger = get_logger(__name__)

# Default configuration values - single source of truth
_DEFAULT_BASE_URL = "https://gitlab.com"
_DEFAULT_TIMEOUT_S = 20.0
_DEFAULT_USER_AGENT = "scmbridge/0.1"


@dataclasses.dataclass(frozen=True, slots=True)
class SCMClientConfig:
    """Settings for the HTTP client a driver creates for itself.

    Attributes
    ----------
    base_url
        Root address of the hosting service; request paths are resolved
        against it.
    timeout_s
        Per-request timeout in seconds.
    user_agent
        ``User-Agent`` header sent with every request.
    log_level
        Level installed by :meth:`apply_logging`.

    """

    base_url: str = _DEFAULT_BASE_URL
    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = _DEFAULT_USER_AGENT
    log_level: str = "INFO"

    @staticmethod
    def _parse_timeout_from_env() -> float:
        raw_timeout = os.environ.get("SCMBRIDGE_TIMEOUT_S")
        if raw_timeout is None:
            return _DEFAULT_TIMEOUT_S

        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise SCMConfigError.invalid_timeout(raw_timeout) from exc

        if not math.isfinite(timeout) or timeout <= 0:
            raise SCMConfigError.invalid_timeout(raw_timeout)
        return timeout

    @classmethod
    def from_env(cls) -> SCMClientConfig:
        """Build configuration from environment variables.

        Reads the following environment variables:

        - ``SCMBRIDGE_BASE_URL``: Optional base URL override
        - ``SCMBRIDGE_TIMEOUT_S``: Optional timeout (positive number)
        - ``SCMBRIDGE_USER_AGENT``: Optional user agent override
        - ``SCMBRIDGE_LOG_LEVEL``: Optional log level

        Raises
        ------
        SCMConfigError
            If the timeout is not a positive, finite number.

        """
        base_url = os.environ.get("SCMBRIDGE_BASE_URL", "").strip()
        user_agent = os.environ.get("SCMBRIDGE_USER_AGENT", "").strip()
        return cls(
            base_url=base_url or _DEFAULT_BASE_URL,
            timeout_s=cls._parse_timeout_from_env(),
            user_agent=user_agent or _DEFAULT_USER_AGENT,
            log_level=os.environ.get("SCMBRIDGE_LOG_LEVEL", "INFO"),
        )

    def apply_logging(self, *, force: bool = False) -> str:
        """Configure femtologging at :attr:`log_level`.

        An unrecognized level falls back to ``INFO`` and is reported with a
        warning once logging is live.

        Returns
        -------
        str
            The level actually installed.

        """
        normalized, invalid = configure_logging(self.log_level, force=force)
        if invalid:
            log_warning(
                logger,
                "Invalid SCMBRIDGE_LOG_LEVEL %r, falling back to %s",
                self.log_level,
                normalized,
            )
        return normalized
