"""
wiwebb_data.api

API boundary package.

Responsibilities:
- Error taxonomy and normalization (`errors`).
- Declared payload shapes and the validation gate (`schemas`, `validation`).
- Deterministic cache keys (`query_keys`).
"""

from wiwebb_data.api.errors import ApiError, ErrorKind, user_friendly_message

__all__ = ["ApiError", "ErrorKind", "user_friendly_message"]
