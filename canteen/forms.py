from django import forms

from .errors import InvalidCart
from .models import CartLine, MenuItem, OrderStatus, PaymentMethod

PAYMENT_CHOICES = [
    (PaymentMethod.CASH_ON_DELIVERY.value, "Cash on Delivery"),
    (PaymentMethod.QR_CODE.value, "QR Code"),
    (PaymentMethod.UPI_APP.value, "UPI App"),
]


class CheckoutForm(forms.Form):
    """
    Top level of a checkout request. The roll number is not required here:
    an empty one is reported by checkout itself as MissingCustomerRef.
    """
    customer_ref = forms.CharField(max_length=64, required=False)
    payment_method = forms.ChoiceField(choices=PAYMENT_CHOICES)
    # id from an earlier attempt, sent again on a manual retry
    order_id = forms.RegexField(regex=r"^[A-Z0-9]{1,32}$", required=False)

    def clean_payment_method(self):
        return PaymentMethod(self.cleaned_data["payment_method"])


class CartLineForm(forms.Form):
    """
    One cart row. ``category`` only tells apart the same item listed under
    two categories; stock is reserved per ``item_id``.
    """
    item_id = forms.CharField(max_length=64)
    name = forms.CharField(max_length=255)
    unit_price = forms.DecimalField(min_value=0, max_digits=10, decimal_places=2)
    quantity = forms.IntegerField(min_value=1)
    category = forms.CharField(max_length=64, required=False)

    def to_cart_line(self):
        data = self.cleaned_data
        category = data.get("category") or ""
        return CartLine(
            item_id=data["item_id"],
            name=data["name"],
            unit_price=data["unit_price"],
            requested_quantity=data["quantity"],
            line_key=f"{data['item_id']}-{category}" if category else data["item_id"],
        )


def parse_cart(raw_lines):
    """
    Validate a list of cart line dicts. Raises InvalidCart naming the first
    bad line.
    """
    if not isinstance(raw_lines, list) or not raw_lines:
        raise InvalidCart("Cart is empty")

    cart = []
    for position, raw in enumerate(raw_lines, start=1):
        form = CartLineForm(raw if isinstance(raw, dict) else {})
        if not form.is_valid():
            problems = "; ".join(
                f"{field}: {' '.join(errors)}" for field, errors in form.errors.items()
            )
            raise InvalidCart(f"Line {position}: {problems}")
        cart.append(form.to_cart_line())
    return cart


class StatusForm(forms.Form):
    status = forms.ChoiceField(choices=[(s.value, s.value) for s in OrderStatus])


class ReleaseForm(forms.Form):
    """Hand back stock for a cancelled or refunded order."""
    quantity = forms.IntegerField(min_value=1)


class MenuItemForm(forms.Form):
    """
    Used for adding or restocking a menu item. ``available_quantity`` is
    the number of units to add.
    """
    item_id = forms.CharField(max_length=64)
    name = forms.CharField(max_length=255)
    category = forms.CharField(max_length=64)
    price = forms.DecimalField(min_value=0, max_digits=10, decimal_places=2)
    available_quantity = forms.IntegerField(min_value=0)

    def to_menu_item(self):
        data = self.cleaned_data
        return MenuItem(
            item_id=data["item_id"],
            name=data["name"],
            category=data["category"],
            price=data["price"],
            available_quantity=data["available_quantity"],
        )
