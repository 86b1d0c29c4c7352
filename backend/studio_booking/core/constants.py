"""Application-wide constants for the studio booking engine."""

from __future__ import annotations

import re

BRAND_NAME = "Studio Booking"

# Capacity constraints
MIN_GROUP_SIZE = 1
MAX_GROUP_SIZE = 4
MIN_SESSION_CAPACITY = 1
MAX_SESSION_CAPACITY = 4

# Package constraints
MIN_PACKAGE_SESSION_NUMBER = 1
MAX_PACKAGE_SESSION_NUMBER = 8

# Session defaults applied at creation
DEFAULT_SESSION_PRICE = 50
DEFAULT_PACKAGE_PRICE = 200
DEFAULT_PACKAGE_DURATION_DAYS = 90

# Text constraints
MAX_SESSION_DESCRIPTION_LENGTH = 500
MAX_BOOKING_NOTES_LENGTH = 1000
MAX_USER_NAME_LENGTH = 100

# "H:MM" or "HH:MM", 00:00 through 23:59
SESSION_TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
