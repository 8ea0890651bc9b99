from __future__ import annotations

import re

# ASCII only; acronyms are not split (GetHTTPStatus -> get-httpstatus)
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def to_kebab_case(value: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"\1-\2", value).lower()


def first_upper(value: str) -> str:
    # empty stays empty; callers reject empty names before this point
    if not value:
        return value
    return value[0].upper() + value[1:]


def first_lower(value: str) -> str:
    if not value:
        return value
    return value[0].lower() + value[1:]
