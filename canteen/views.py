import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from . import services
from .errors import CanteenError
from .forms import CheckoutForm, MenuItemForm, ReleaseForm, StatusForm, parse_cart
from .queue_view import project_orders, staff_queue

log = logging.getLogger(__name__)


# helpers for the JSON endpoints
def json_errors(view):
    """Turn ordering-core errors into JSON error responses."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except CanteenError as e:
            if e.status_code >= 500:
                log.error("%s %s failed: %s", request.method, request.path, e)
            return JsonResponse(e.to_dict(), status=e.status_code)
    return wrapper


def _body(request):
    """Parsed JSON body, or form data for plain POSTs."""
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
    return request.POST.dict()


def _bad_request(detail, fields=None):
    payload = {"error": "InvalidRequest", "detail": detail, "retryable": False}
    if fields:
        payload["fields"] = fields
    return JsonResponse(payload, status=400)


# menu
@require_GET
@json_errors
def menu(request):
    """
    Menu grouped by category. ``?search=`` filters by item name.
    Items with no stock stay listed with ``out_of_stock`` set.
    """
    grouped = services.get_ledger().menu()

    search = (request.GET.get("search") or "").strip().lower()
    categories = {}
    for category, items in grouped.items():
        matches = [i for i in items if search in i.name.lower()]
        if matches:
            categories[category] = [i.to_dict() for i in matches]

    return JsonResponse({"categories": categories})


@csrf_exempt
@require_POST
@json_errors
def add_menu_item(request):
    """
    Adds a menu item or restocks an existing one (staff). The posted
    ``available_quantity`` is added to whatever is left.
    """
    data = _body(request)
    if data is None:
        return _bad_request("Body must be a JSON object")

    form = MenuItemForm(data)
    if not form.is_valid():
        return _bad_request("Invalid menu item", form.errors.get_json_data())

    item = services.get_ledger().restock(form.to_menu_item())
    return JsonResponse(item.to_dict(), status=201)


@csrf_exempt
@require_POST
@json_errors
def release_stock(request, item_id):
    """Give stock back after a cancellation or refund (staff)."""
    data = _body(request)
    if data is None:
        return _bad_request("Body must be a JSON object")

    form = ReleaseForm(data)
    if not form.is_valid():
        return _bad_request("Invalid quantity", form.errors.get_json_data())

    available = services.get_ledger().release(item_id, form.cleaned_data["quantity"])
    return JsonResponse({"item_id": item_id, "available_quantity": available})


# checkout
@csrf_exempt
@require_POST
@json_errors
def checkout(request):
    """
    Body: ``{"customer_ref", "payment_method", "order_id"?, "lines": [...]}``.

    201 with the stored order on success. A 503 carries ``retryable`` and
    the ``order_id`` to send back on the manual retry.
    """
    data = _body(request)
    if data is None:
        return _bad_request("Body must be a JSON object")

    form = CheckoutForm(data)
    if not form.is_valid():
        return _bad_request("Invalid checkout request", form.errors.get_json_data())

    cart = parse_cart(data.get("lines"))
    coordinator = services.get_coordinator()
    order = coordinator.checkout(
        cart,
        form.cleaned_data["customer_ref"],
        form.cleaned_data["payment_method"],
        order_id=form.cleaned_data.get("order_id") or None,
    )
    return JsonResponse(order.to_dict(), status=201)


# orders
@require_GET
@json_errors
def customer_orders(request):
    """A customer's orders, pending first then newest first."""
    customer_ref = (request.GET.get("customer_ref") or "").strip()
    if not customer_ref:
        return _bad_request("Roll number is required to view orders")

    orders = services.get_order_store().query_by_customer(customer_ref)
    return JsonResponse({
        "customer_ref": customer_ref,
        "orders": [o.to_dict() for o in project_orders(orders)],
    })


@require_GET
@json_errors
def order_detail(request, order_id):
    order = services.get_order_store().get_by_id(order_id)
    return JsonResponse(order.to_dict())


@require_GET
@json_errors
def kitchen_queue(request):
    """Open orders for the kitchen, oldest first. ``?status=`` narrows it."""
    orders = staff_queue(services.get_order_store().list_all())

    status = request.GET.get("status")
    if status:
        orders = [o for o in orders if o.status.value == status]

    return JsonResponse({"orders": [o.to_dict() for o in orders]})


@csrf_exempt
@require_POST
@json_errors
def update_status(request, order_id):
    """Fulfilment side: move an order to paid or completed."""
    data = _body(request)
    if data is None:
        return _bad_request("Body must be a JSON object")

    form = StatusForm(data)
    if not form.is_valid():
        return _bad_request("Invalid status", form.errors.get_json_data())

    order = services.get_order_store().advance_status(order_id, form.cleaned_data["status"])
    return JsonResponse(order.to_dict())
