from enum import Enum


class LineRole(str, Enum):
    BASE = "base"
    EXTRA = "extra"
