"""
Failure taxonomy of the ordering core.

Input errors (InvalidCart, MissingCustomerRef) are never retried.
OutOfStock is a business rejection the customer resolves by editing the
cart. Contention and StoreUnavailable are transient. CompensationFailed
means inventory may have drifted and an operator has to look at it.
"""


class CanteenError(Exception):
    """Base class for every error raised by the ordering core."""

    #: HTTP status the JSON views answer with
    status_code = 500
    retryable = False

    def to_dict(self):
        return {
            "error": type(self).__name__,
            "detail": str(self),
            "retryable": self.retryable,
        }


class InvalidCart(CanteenError):
    status_code = 400


class MissingCustomerRef(CanteenError):
    status_code = 400

    def __init__(self, message="Roll number required!"):
        super().__init__(message)


class OutOfStock(CanteenError):
    status_code = 409

    def __init__(self, shortages):
        self.shortages = list(shortages)
        names = ", ".join(
            f"{s.item_id} (available {s.available}, requested {s.requested})"
            for s in self.shortages
        )
        super().__init__(f"Not enough stock for: {names}")

    def to_dict(self):
        data = super().to_dict()
        data["shortages"] = [s.to_dict() for s in self.shortages]
        return data


class Contention(CanteenError):
    status_code = 409
    retryable = True

    def __init__(self, attempts):
        self.attempts = attempts
        super().__init__(f"Stock is busy, gave up after {attempts} attempts")


class StoreUnavailable(CanteenError):
    status_code = 503
    retryable = True

    def __init__(self, message, cause=None, order_id=None):
        super().__init__(message)
        self.cause = cause
        # lets the caller retry the same checkout without a duplicate order
        self.order_id = order_id

    def to_dict(self):
        data = super().to_dict()
        if self.order_id:
            data["order_id"] = self.order_id
        return data


class OrderNotFound(CanteenError):
    status_code = 404

    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class DuplicateOrder(CanteenError):
    """An order id is already taken by a different customer's order."""

    status_code = 409

    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__(f"Order id {order_id} is already in use")


class InvalidStatusTransition(CanteenError):
    status_code = 409

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from {current} to {requested}")


class CompensationFailed(CanteenError):
    """
    Order creation failed after stock was reserved and the reserved
    quantities could not all be given back, or it is unknown whether the
    order was stored, so the stock is kept held for an operator to settle.

    ``unreleased`` maps item id to the quantity still held.
    """

    status_code = 500

    def __init__(self, order_id, unreleased, cause=None):
        self.order_id = order_id
        self.unreleased = dict(unreleased)
        self.cause = cause
        super().__init__(
            f"[Order: {order_id}] stock not released after failed order "
            f"creation: {self.unreleased}"
        )

    def to_dict(self):
        data = super().to_dict()
        data["unreleased"] = self.unreleased
        return data


class UnknownItem(CanteenError):
    status_code = 404

    def __init__(self, item_id):
        self.item_id = item_id
        super().__init__(f"Item {item_id} is not on the menu")
