import time
from enum import Enum
from typing import Callable, Optional

import requests

from .client.prediction_client import PredictionClient, PredictionFailed, PredictionTimeout
from .config import DEFAULT_MAX_WAIT, DEFAULT_POLL_INTERVAL
from .loopgenlog import LOG
from .models import PredictionStatus


class PollState(str, Enum):
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class StatusPoller:
    """
    Polls one prediction at a fixed interval until it succeeds, fails, or the
    wait bound is reached. Errors during a tick are logged and polling goes on.
    """

    def __init__(
        self,
        client: PredictionClient,
        prediction_id: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: Optional[float] = DEFAULT_MAX_WAIT,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.prediction_id = prediction_id
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock

        self.state = PollState.POLLING
        self.attempts = 0
        self.last_status: Optional[PredictionStatus] = None
        self.output_url: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.state is PollState.POLLING

    def tick(self) -> PollState:
        """Issue one status request and apply the result."""
        if not self.active:
            return self.state

        self.attempts += 1
        try:
            status = self.client.get_prediction(self.prediction_id)
        except (requests.RequestException, ValueError) as e:
            # malformed bodies surface as ValueError (json or pydantic)
            LOG.warning(
                "Poll %d for %s failed: %s", self.attempts, self.prediction_id, e
            )
            return self.state

        self.last_status = status
        if status.is_succeeded:
            self.output_url = status.output_url
            self.state = PollState.DONE
            LOG.info("Prediction %s succeeded: %s", self.prediction_id, self.output_url)
        elif status.is_failed:
            self.state = PollState.FAILED
            LOG.error(
                "Prediction %s ended with status=%s (%s)",
                self.prediction_id,
                status.status,
                status.error,
            )
        else:
            LOG.debug("Prediction %s status=%s", self.prediction_id, status.status)
        return self.state

    def _bound_reached(self, started: float) -> bool:
        if self.max_attempts is not None and self.attempts >= self.max_attempts:
            return True
        if self.max_wait is not None and (self._clock() - started) >= self.max_wait:
            return True
        return False

    def run(self) -> PollState:
        """Tick until a terminal state or until the wait bound is hit."""
        started = self._clock()
        LOG.info(
            "Polling prediction %s every %.1fs (max_wait=%s, max_attempts=%s)",
            self.prediction_id,
            self.poll_interval,
            self.max_wait,
            self.max_attempts,
        )
        while self.active:
            self.tick()
            if not self.active:
                break
            if self._bound_reached(started):
                self.state = PollState.TIMED_OUT
                LOG.warning(
                    "Prediction %s did not complete after %d polls",
                    self.prediction_id,
                    self.attempts,
                )
                self._cancel_quietly()
                break
            self._sleep(self.poll_interval)
        return self.state

    def wait(self) -> PredictionStatus:
        """Run the poll loop and return the succeeded status, raising otherwise."""
        state = self.run()
        if state is PollState.DONE:
            return self.last_status
        if state is PollState.FAILED:
            raise PredictionFailed(self.last_status)
        raise PredictionTimeout(
            f"Prediction {self.prediction_id} did not complete after {self.attempts} polls"
        )

    def _cancel_quietly(self):
        try:
            self.client.cancel_prediction(self.prediction_id)
        except (requests.RequestException, ValueError):
            LOG.warning("Could not cancel prediction %s", self.prediction_id)
