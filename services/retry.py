'''
Bounded exponential-backoff retry around a single database call.
Only transient network failures are retried; everything else is raised
on the first attempt.
'''

import logging
import re
import time

from sqlalchemy.exc import DBAPIError, DisconnectionError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)

TRANSIENT_PATTERN = re.compile(
    r"fetch failed|network error|connection (refused|reset|timed out)"
    r"|server closed the connection|could not connect|timeout expired",
    re.IGNORECASE,
)


def is_transient_failure(error):
    if isinstance(error, (ConnectionError, TimeoutError, DisconnectionError, PoolTimeoutError)):
        return True
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return True
    return bool(TRANSIENT_PATTERN.search(str(error)))


def with_retry(operation, max_attempts = 3, initial_delay_ms = 1000, backoff_factor = 2, sleep = time.sleep):
    """Call ``operation()`` until it succeeds or the attempt budget runs out.

    Waits ``initial_delay_ms * backoff_factor ** attempt`` between attempts,
    without jitter. The last failure is re-raised unchanged.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except Exception as e:
            if not is_transient_failure(e) or attempt + 1 >= max_attempts:
                raise
            delay_ms = initial_delay_ms * backoff_factor ** attempt
            logger.warning(
                "Transient store failure (attempt %d of %d), retrying in %d ms: %s",
                attempt + 1, max_attempts, delay_ms, e
            )
            sleep(delay_ms / 1000)
            attempt += 1


class RetryPolicy:
    # Holds the retry settings from app config so repositories share one instance

    def __init__(self, max_attempts = 3, initial_delay_ms = 1000, backoff_factor = 2, sleep = time.sleep):
        self.max_attempts = max_attempts
        self.initial_delay_ms = initial_delay_ms
        self.backoff_factor = backoff_factor
        self.sleep = sleep

    @classmethod
    def from_config(cls, config):
        return cls(
            max_attempts = int(config.get("RETRY_MAX_ATTEMPTS", 3)),
            initial_delay_ms = int(config.get("RETRY_INITIAL_DELAY_MS", 1000)),
            backoff_factor = float(config.get("RETRY_BACKOFF_FACTOR", 2)),
        )

    def run(self, operation):
        return with_retry(
            operation,
            max_attempts = self.max_attempts,
            initial_delay_ms = self.initial_delay_ms,
            backoff_factor = self.backoff_factor,
            sleep = self.sleep,
        )
