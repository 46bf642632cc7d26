"""
Module for polling an asset's delivery state until it is terminal.
"""
import logging
from typing import Callable, Optional

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_result,
    wait_fixed,
)
from tenacity.stop import stop_base

from .deadline import Deadline
from .errors import DeliveryFailedError, DeliveryTimeoutError
from .models import AssetDeliveryState, COMPLETE, FAILED

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0

FetchState = Callable[[], Optional[AssetDeliveryState]]


class stop_at_deadline(stop_base):
    """Stop polling once the governing deadline has fired."""

    def __init__(self, deadline: Deadline):
        self.deadline = deadline

    def __call__(self, retry_state) -> bool:
        return self.deadline.expired


def _is_terminal(state: Optional[AssetDeliveryState]) -> bool:
    return state is not None and state.state.upper() in (COMPLETE, FAILED)


class DeliveryPoller:
    """Polls delivery state at a fixed interval until COMPLETE, FAILED or the deadline."""

    def __init__(self, interval: float = DEFAULT_POLL_INTERVAL):
        """Initialize the poller.

        Args:
            interval: Seconds to wait between fetches
        """
        self.interval = interval

    def wait_for_delivery(self, asset_id: str, fetch: FetchState,
                          deadline: Deadline) -> str:
        """Poll until the asset is delivered.

        A fetch error is not classified further: a DeadlineExceededError
        raised inside fetch also surfaces as DeliveryFailedError, with the
        original exception as its cause.

        Args:
            asset_id: Identifier of the asset being processed
            fetch: Callable returning the current delivery state (or None
                if the service has not reported one yet)
            deadline: Governing deadline; firing it stops the wait immediately

        Returns:
            The terminal state string (COMPLETE)

        Raises:
            DeliveryFailedError: If the state is FAILED or a fetch raises
            DeliveryTimeoutError: If the deadline fires first
        """
        last_state = ""

        def attempt() -> Optional[AssetDeliveryState]:
            nonlocal last_state
            try:
                state = fetch()
            except Exception as e:
                raise DeliveryFailedError(asset_id, last_state, str(e)) from e
            if state is not None:
                last_state = state.state
            logger.debug(f"Asset {asset_id} delivery state: {last_state or 'unknown'}")
            return state

        def sleep(seconds: float) -> None:
            if deadline.wait(seconds):
                raise DeliveryTimeoutError(asset_id, last_state)

        retrying = Retrying(
            retry=retry_if_result(lambda state: not _is_terminal(state)),
            wait=wait_fixed(self.interval),
            stop=stop_at_deadline(deadline),
            sleep=sleep,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        )

        try:
            state = retrying(attempt)
        except RetryError:
            raise DeliveryTimeoutError(asset_id, last_state) from None

        if state.state.upper() == FAILED:
            raise DeliveryFailedError(asset_id, state.state, state.describe_errors())
        return state.state
