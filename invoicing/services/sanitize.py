# invoicing/services/sanitize.py

import re

from django.utils.html import strip_tags

_ANGLE_BRACKETS = re.compile(r"[<>]")


def sanitize_text(value) -> str:
    """
    Strip HTML tags and stray angle brackets, then trim.
    """
    if value is None:
        return ""
    return _ANGLE_BRACKETS.sub("", strip_tags(str(value))).strip()
