# Copyright 2021-present Kensho Technologies, LLC.
import logging
import threading
from typing import Any, Optional

from .compiler.document_composer import CompiledDocument
from .compiler.response_remapping import flatten_single_result
from .exceptions import HasuraCompilerError, MalformedResponseError, TransportError
from .typedefs import CancelFunc, MessageCallback, SubscriptionFunc


logger = logging.getLogger(__name__)


class Subscription:
    """A live subscription, forwarding flattened messages until it is cancelled.

    Calling the subscription, or its cancel() method, tears down the underlying transport
    session. Cancelling is idempotent and does not wait for the transport. No message delivery
    starts after cancel() has returned, even if the transport delivers messages it had buffered.
    """

    def __init__(
        self,
        compiled: CompiledDocument,
        on_message: MessageCallback,
        flatten_single: bool = True,
    ) -> None:
        """Create a subscription for the compiled document. It is inactive until opened."""
        self.compiled = compiled
        self._on_message = on_message
        self._flatten_single = flatten_single

        self._lock = threading.Lock()
        self._cancelled = False
        self._transport_cancel: Optional[CancelFunc] = None

    def __call__(self) -> None:
        """Cancel the subscription."""
        self.cancel()

    @property
    def is_cancelled(self) -> bool:
        """Return True if the subscription has been cancelled."""
        return self._cancelled

    def open(self, open_subscription_func: SubscriptionFunc) -> "Subscription":
        """Open the transport session for the subscription, and return the subscription.

        Raises:
            TransportError if the transport session cannot be opened
        """
        try:
            transport_cancel = open_subscription_func(
                self.compiled.text, self.compiled.variables, self._handle_message
            )
        except HasuraCompilerError as e:
            logger.warning("Opening subscription %s failed: %s", self.compiled.operation_name, e)
            raise
        except Exception as e:
            logger.warning("Opening subscription %s failed: %r", self.compiled.operation_name, e)
            raise TransportError(
                "Opening subscription {} failed: {!r}".format(self.compiled.operation_name, e)
            ) from e
        with self._lock:
            cancelled = self._cancelled
            if not cancelled:
                self._transport_cancel = transport_cancel

        # The subscription was cancelled while the transport session was being opened.
        if cancelled:
            transport_cancel()
        return self

    def cancel(self) -> None:
        """Stop delivering messages and tear down the transport session."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            transport_cancel, self._transport_cancel = self._transport_cancel, None

        if transport_cancel is not None:
            transport_cancel()

    def _handle_message(self, error: Optional[Exception], data: Any) -> None:
        """Flatten a message from the transport and forward it to the callback."""
        if self._cancelled:
            logger.debug(
                "Dropping a message for cancelled subscription %s.", self.compiled.operation_name
            )
            return

        if error is not None:
            self._on_message(error, None)
            return

        try:
            result = flatten_single_result(self.compiled.result_keys, data, self._flatten_single)
        except MalformedResponseError as e:
            self._on_message(e, None)
            return
        self._on_message(None, result)


class SubscriptionManager:
    """Opens subscriptions for compiled documents over a live transport."""

    def __init__(self, open_subscription_func: SubscriptionFunc) -> None:
        """Create a manager opening subscriptions with the given transport function."""
        self._open_subscription_func = open_subscription_func

    def subscribe(
        self,
        compiled: CompiledDocument,
        on_message: MessageCallback,
        flatten_single: bool = True,
    ) -> Subscription:
        """Open a subscription for the compiled document, and return it.

        Raises:
            TransportError if the transport session cannot be opened
        """
        subscription = Subscription(compiled, on_message, flatten_single=flatten_single)
        logger.debug("Opening subscription %s.", compiled.operation_name)
        return subscription.open(self._open_subscription_func)
