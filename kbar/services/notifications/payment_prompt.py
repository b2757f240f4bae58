"""One-shot request to open the payment dialog for an order."""
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class PaymentPrompt:
    """Holds at most one pending payment-dialog request.

    The review surface consumes the request when it renders, which clears
    it, so returning to the same surface does not reopen the dialog.
    """

    def __init__(self):
        self._order_id: Optional[str] = None

    def request(self, order_id: str) -> None:
        self._order_id = order_id
        logger.debug(f"[PAYMENT PROMPT] Requested for order {order_id}")

    def consume(self) -> Optional[str]:
        order_id, self._order_id = self._order_id, None
        return order_id

    @property
    def pending(self) -> bool:
        return self._order_id is not None
