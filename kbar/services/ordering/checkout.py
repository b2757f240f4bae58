"""Order placement from the cart and from the menu."""
import logging

from kbar.core.exceptions import EmptyOrderError
from kbar.services.menu.base import MenuItem
from kbar.services.notifications.payment_prompt import PaymentPrompt
from kbar.services.ordering.cart import CartAggregator, validate_quantity
from kbar.services.ordering.models import CartItem, Order, OrderOrigin
from kbar.services.ordering.state_machine import OrderStateMachine

logger = logging.getLogger(__name__)


class CheckoutService:
    """Places orders. Every path enters pending_payment."""

    def __init__(
        self,
        machine: OrderStateMachine,
        cart: CartAggregator,
        payment_prompt: PaymentPrompt,
    ):
        self.machine = machine
        self.cart = cart
        self.payment_prompt = payment_prompt

    async def submit_cart(self, pay_now: bool = False) -> Order:
        """
        Create an order from the cart, then empty the cart.

        Args:
            pay_now: ask the order review surface to open the payment dialog

        Raises:
            EmptyOrderError: the cart has no items
            OutstandingOrderError: another order is still awaiting payment
        """
        items = await self.cart.load()
        if not items:
            raise EmptyOrderError("Your cart is empty. Add some items first!")

        order = await self.machine.create_order(items, OrderOrigin.CART)
        await self.cart.clear()
        if pay_now:
            self.payment_prompt.request(order.id)
        logger.info(f"[CHECKOUT] Cart submitted as {order.order_number}, total ${order.total:.2f}")
        return order

    async def order_now(self, item: MenuItem, quantity: int = 1, pay_now: bool = False) -> Order:
        """Order a single menu item directly, bypassing the cart."""
        quantity = validate_quantity(quantity)
        order = await self.machine.create_order(
            [CartItem.from_menu_item(item, quantity)], OrderOrigin.MENU
        )
        if pay_now:
            self.payment_prompt.request(order.id)
        return order
