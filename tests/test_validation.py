"""
Unit tests for payload validators and helpers.

No app or database needed: these exercise the pure functions used by the views.
"""
from decimal import Decimal

import pytest

from app.marketplace.modules.orders.service import validate_order_payload
from app.marketplace.modules.products.service import parse_price, validate_product_payload
from app.marketplace.modules.users.service import validate_signup_payload, validate_user_updates
from app.marketplace.utils import clean_str, is_valid_email, parse_positive_int


class TestEmail:
    def test_accepts_common_addresses(self):
        assert is_valid_email("a@b.cz")
        assert is_valid_email("first.last+tag@sub.example.com")

    def test_rejects_missing_at_or_domain(self):
        assert not is_valid_email("example.com")
        assert not is_valid_email("a@b")
        assert not is_valid_email("")


class TestPositiveInt:
    @pytest.mark.parametrize("value,expected", [(1, 1), ("42", 42), (3.0, 3), (" 7 ", 7)])
    def test_valid(self, value, expected):
        assert parse_positive_int(value) == expected

    @pytest.mark.parametrize("value", [0, -1, 2.5, "x", None, True, "", [1]])
    def test_invalid(self, value):
        assert parse_positive_int(value) is None


class TestPrice:
    def test_valid(self):
        assert parse_price("10") == Decimal("10")
        assert parse_price(19.99) == Decimal("19.99")
        assert parse_price(0) == Decimal("0")

    @pytest.mark.parametrize("value", [None, True, "-0.01", "1.001", "NaN", "Infinity", "abc"])
    def test_invalid(self, value):
        assert parse_price(value) is None


def test_clean_str():
    assert clean_str("  x ") == "x"
    assert clean_str("   ") is None
    assert clean_str(None) is None
    assert clean_str(123) == "123"


class TestSignupValidation:
    def test_valid(self):
        assert validate_signup_payload({"email": "a@b.cz", "password": "12345678"}) == []

    def test_password_min_length(self):
        errors = validate_signup_payload({"email": "a@b.cz", "password": "1234567"})
        assert errors == ["Password must be at least 8 characters."]

    def test_profile_field_types(self):
        errors = validate_signup_payload({"email": "a@b.cz", "password": "12345678", "city": {"x": 1}})
        assert errors == ["city must be a string."]

    @pytest.mark.parametrize("value", [True, False])
    def test_profile_field_rejects_bool(self, value):
        errors = validate_signup_payload({"email": "a@b.cz", "password": "12345678", "city": value})
        assert errors == ["city must be a string."]

    @pytest.mark.parametrize(
        "field,limit",
        [("first_name", 128), ("company_name", 255), ("phone", 64), ("postal_code", 20), ("country", 64)],
    )
    def test_profile_field_max_length(self, field, limit):
        ok = {"email": "a@b.cz", "password": "12345678", field: "9" * limit}
        assert validate_signup_payload(ok) == []
        too_long = {"email": "a@b.cz", "password": "12345678", field: "9" * (limit + 1)}
        assert validate_signup_payload(too_long) == [f"{field} must be at most {limit} characters."]

    def test_email_max_length(self):
        email = "x" * 309 + "@example.com"
        assert len(email) == 321
        errors = validate_signup_payload({"email": email, "password": "12345678"})
        assert errors == ["Email must be at most 320 characters."]


class TestUserUpdateValidation:
    def test_only_supplied_fields_are_checked(self):
        assert validate_user_updates({}) == []
        assert validate_user_updates({"approved": False}) == []

    def test_role_must_be_known(self):
        assert validate_user_updates({"role": "owner"})

    def test_profile_lengths_checked_on_update(self):
        assert validate_user_updates({"profile": {"postal_code": "1" * 20}}) == []
        assert validate_user_updates({"profile": {"postal_code": "1" * 21}}) == [
            "postal_code must be at most 20 characters."
        ]
        assert validate_user_updates({"email": "x" * 309 + "@example.com"})


class TestOrderValidation:
    def test_create_requires_volume(self):
        assert validate_order_payload({})
        assert validate_order_payload({"volume": 5}) == []

    def test_partial_skips_missing_volume(self):
        assert validate_order_payload({"comments": "hi"}, partial=True) == []

    def test_status_only_checked_on_patch(self):
        assert validate_order_payload({"status": "Shipped"}, partial=True)
        assert validate_order_payload({"status": "Cancelled"}, partial=True) == []

    def test_ico_length(self):
        assert validate_order_payload({"volume": 1, "ico": "9" * 33})

    @pytest.mark.parametrize("field", ["comments", "ico"])
    def test_text_fields_reject_bool(self, field):
        assert validate_order_payload({"volume": 1, field: True}) == [f"{field} must be a string."]


def test_product_validation_collects_all_errors():
    errors = validate_product_payload({"name": "", "price": "-5"})
    assert len(errors) == 2
