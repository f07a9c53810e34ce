"""
Display orderings over a list of orders. No I/O and no state: the same
orders in any input order give the same output (up to queue_position ties,
which keep their input order).
"""

from .models import OrderStatus


def _customer_key(order):
    # pending sorts first; newest first inside each group
    return (order.status is not OrderStatus.PENDING, -order.queue_position)


def project_orders(orders):
    """Customer's "Your Orders" list: pending first, then newest first."""
    return sorted(orders, key=_customer_key)


def staff_queue(orders):
    """Kitchen queue: everything not yet completed, oldest first."""
    open_orders = [o for o in orders if not o.status.is_terminal]
    return sorted(open_orders, key=lambda o: o.queue_position)
