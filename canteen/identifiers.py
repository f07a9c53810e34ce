"""Bill, order and transaction id generation."""

import random
import time

DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
TOKEN_LENGTH = 6


def to_base36(number):
    """Integer -> lowercase base-36 string."""
    if number < 0:
        raise ValueError("base-36 conversion expects a non-negative integer")
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(DIGITS[rem])
    return "".join(reversed(out))


def fraction_digits(fraction, count):
    """First ``count`` base-36 digits after the point of ``0 <= fraction < 1``."""
    out = []
    for _ in range(count):
        fraction *= 36
        digit = int(fraction)
        out.append(DIGITS[digit])
        fraction -= digit
    return "".join(out)


def random_token(length=TOKEN_LENGTH, rng=random):
    """Uppercase base-36 token drawn from a random fraction."""
    return fraction_digits(rng.random(), length).upper()


def new_order_id(rng=random):
    return random_token(rng=rng)


def new_bill_id(rng=random):
    return random_token(rng=rng)


def now_millis():
    return int(time.time() * 1000)


def new_transaction_id(millis=None, rng=random):
    """Base-36 epoch-millisecond timestamp followed by a 6-digit random suffix."""
    if millis is None:
        millis = now_millis()
    return to_base36(millis).upper() + random_token(rng=rng)
