"""Enumeration types for BookGenie QA data models."""

from enum import Enum


class CitationType(str, Enum):
    METADATA = "metadata"
    MANUSCRIPT = "manuscript"


class ValidationStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
