"""
Records handled by the ordering core.

Everything is persisted in DynamoDB as plain dicts; these dataclasses are
the typed view of those documents. ``to_item`` gives the stored shape,
``from_item`` reads it back.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce an int/float/str/Decimal price into a 2-place Decimal."""
    if isinstance(value, Decimal):
        return value.quantize(CENTS)
    return Decimal(str(value)).quantize(CENTS)


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "CashOnDelivery"
    QR_CODE = "QRCode"
    UPI_APP = "UpiApp"

    @classmethod
    def parse(cls, raw):
        """Accept the enum value or the label shown on the bill screen."""
        if isinstance(raw, cls):
            return raw
        labels = {
            "cash on delivery": cls.CASH_ON_DELIVERY,
            "qr code": cls.QR_CODE,
            "upi app": cls.UPI_APP,
        }
        text = str(raw).strip()
        for member in cls:
            if member.value == text:
                return member
        try:
            return labels[text.lower()]
        except KeyError:
            raise ValueError(f"Unknown payment method: {raw!r}") from None


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COMPLETED = "completed"

    @classmethod
    def initial_for(cls, payment_method):
        # only cash orders wait for payment at the counter
        if PaymentMethod.parse(payment_method) is PaymentMethod.CASH_ON_DELIVERY:
            return cls.PENDING
        return cls.PAID

    def can_advance_to(self, other) -> bool:
        return OrderStatus(other) in _TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]


_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.COMPLETED}),
    OrderStatus.PAID: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
}


@dataclass
class MenuItem:  # one row of the Inventory table
    item_id: str
    name: str
    category: str
    price: Decimal
    available_quantity: int
    version: int = 0

    @property
    def out_of_stock(self) -> bool:
        return self.available_quantity <= 0

    def to_item(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "category": self.category,
            "price": to_money(self.price),
            "available_quantity": int(self.available_quantity),
            "stock_version": int(self.version),
        }

    @classmethod
    def from_item(cls, item: dict) -> "MenuItem":
        return cls(
            item_id=str(item["item_id"]),
            name=item.get("name", item["item_id"]),
            category=item.get("category", ""),
            price=to_money(item.get("price", 0)),
            available_quantity=int(item.get("available_quantity", 0)),
            version=int(item.get("stock_version", 0)),
        )

    def to_dict(self) -> dict:
        data = self.to_item()
        data["price"] = str(data["price"])
        data["out_of_stock"] = self.out_of_stock
        return data


@dataclass(frozen=True)
class CartLine:
    """A cart row as the customer's session holds it at checkout time."""

    item_id: str
    name: str
    unit_price: Decimal
    requested_quantity: int
    # same catalogue item listed under two categories gives two lines
    line_key: Optional[str] = None


@dataclass(frozen=True)
class StockRequest:
    item_id: str
    quantity: int


@dataclass(frozen=True)
class Shortage:
    item_id: str
    available: int
    requested: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Reserved:
    requests: Tuple[StockRequest, ...]


@dataclass(frozen=True)
class Rejected:
    shortages: Tuple[Shortage, ...]


@dataclass(frozen=True)
class OrderLine:
    item_id: str
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    def to_item(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "unit_price": to_money(self.unit_price),
            "quantity": int(self.quantity),
        }

    @classmethod
    def from_item(cls, item: dict) -> "OrderLine":
        return cls(
            item_id=str(item["item_id"]),
            name=item["name"],
            unit_price=to_money(item["unit_price"]),
            quantity=int(item["quantity"]),
        )


@dataclass(frozen=True)
class OrderDraft:
    """An order built by checkout but not yet written."""

    order_id: str
    bill_id: str
    customer_ref: str
    lines: Tuple[OrderLine, ...]
    total_amount: Decimal
    payment_method: PaymentMethod
    status: OrderStatus
    queue_position: int
    transaction_id: Optional[str] = None
    display_date: str = ""
    display_time: str = ""
    payment_link: Optional[str] = None

    def to_item(self) -> dict:
        return {
            "order_id": self.order_id,
            "bill_id": self.bill_id,
            "customer_ref": self.customer_ref,
            "lines": [line.to_item() for line in self.lines],
            "total_amount": to_money(self.total_amount),
            "payment_method": PaymentMethod(self.payment_method).value,
            "status": OrderStatus(self.status).value,
            "transaction_id": self.transaction_id,
            "queue_position": int(self.queue_position),
            "display_date": self.display_date,
            "display_time": self.display_time,
            "payment_link": self.payment_link,
        }


@dataclass(frozen=True)
class Order(OrderDraft):
    """A persisted order; ``doc_id`` and ``created_at`` come from the store."""

    doc_id: str = ""
    created_at: str = ""

    def to_item(self) -> dict:
        item = super().to_item()
        item["doc_id"] = self.doc_id
        item["created_at"] = self.created_at
        return item

    def to_dict(self) -> dict:
        """JSON-safe rendering for the HTTP layer."""
        data = self.to_item()
        data["total_amount"] = str(data["total_amount"])
        for line in data["lines"]:
            line["unit_price"] = str(line["unit_price"])
        return data

    @classmethod
    def from_draft(cls, draft: OrderDraft, doc_id: str, created_at: str) -> "Order":
        return cls(doc_id=doc_id, created_at=created_at, **_draft_fields(draft))

    @classmethod
    def from_item(cls, item: dict) -> "Order":
        return cls(
            order_id=item["order_id"],
            bill_id=item["bill_id"],
            customer_ref=item["customer_ref"],
            lines=tuple(OrderLine.from_item(line) for line in item.get("lines", [])),
            total_amount=to_money(item["total_amount"]),
            payment_method=PaymentMethod.parse(item["payment_method"]),
            status=OrderStatus(item["status"]),
            queue_position=int(item["queue_position"]),
            transaction_id=item.get("transaction_id"),
            display_date=item.get("display_date", ""),
            display_time=item.get("display_time", ""),
            payment_link=item.get("payment_link"),
            doc_id=item.get("doc_id", ""),
            created_at=item.get("created_at", ""),
        )


def _draft_fields(draft: OrderDraft) -> dict:
    return {name: getattr(draft, name) for name in OrderDraft.__dataclass_fields__}
