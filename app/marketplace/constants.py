"""
Central constants for the marketplace application.
"""
from __future__ import annotations

ROLE_ADMIN = "admin"
ROLE_USER = "user"
VALID_ROLES = (ROLE_ADMIN, ROLE_USER)

ORDER_STATUS_PENDING = "Pending"
ORDER_STATUSES = (ORDER_STATUS_PENDING, "Approved", "Rejected", "Cancelled")

MIN_PASSWORD_LENGTH = 8

# Descriptive fields a user can supply at signup (stored on Profile)
PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "company_name",
    "phone",
    "address",
    "city",
    "postal_code",
    "country",
)

# Column sizes on Profile (users/models.py); longer input is refused with a 400
PROFILE_FIELD_MAX_LENGTHS = {
    "first_name": 128,
    "last_name": 128,
    "company_name": 255,
    "phone": 64,
    "address": 255,
    "city": 128,
    "postal_code": 20,
    "country": 64,
}

MAX_EMAIL_LENGTH = 320
