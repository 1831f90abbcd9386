# triage/dialogue/screens.py
from enum import Enum


class Screen(str, Enum):
    INTAKE = "intake"
    QUESTIONING = "questioning"
    SUMMARY = "summary"


class StorageTier(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"
    UNSAVED = "unsaved"
