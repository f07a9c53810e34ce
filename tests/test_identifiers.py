import random
import re

import pytest

from canteen import identifiers

TOKEN = re.compile(r"^[0-9A-Z]{6}$")


def test_to_base36():
    assert identifiers.to_base36(0) == "0"
    assert identifiers.to_base36(35) == "z"
    assert identifiers.to_base36(36) == "10"
    assert identifiers.to_base36(1700000000000) == "loyw3v28"


def test_to_base36_rejects_negative():
    with pytest.raises(ValueError):
        identifiers.to_base36(-1)


def test_fraction_digits():
    assert identifiers.fraction_digits(0.5, 3) == "i00"
    assert identifiers.fraction_digits(0.0, 4) == "0000"


def test_order_and_bill_ids_are_six_char_base36_uppercase():
    rng = random.Random(7)
    for _ in range(50):
        assert TOKEN.match(identifiers.new_order_id(rng=rng))
        assert TOKEN.match(identifiers.new_bill_id(rng=rng))


def test_order_and_bill_ids_are_independent():
    rng = random.Random(3)
    assert identifiers.new_order_id(rng=rng) != identifiers.new_bill_id(rng=rng)


def test_transaction_id_is_timestamp_plus_suffix():
    tx = identifiers.new_transaction_id(1700000000000, rng=random.Random(1))
    assert tx.startswith("LOYW3V28")
    assert TOKEN.match(tx[len("LOYW3V28"):])


def test_transaction_id_defaults_to_now():
    tx = identifiers.new_transaction_id()
    assert re.match(r"^[0-9A-Z]{14,}$", tx)
