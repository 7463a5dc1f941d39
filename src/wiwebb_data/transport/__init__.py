"""
wiwebb_data.transport

HTTP transport package.

Responsibilities:
- The single shared, auth-aware, retrying HTTP client (`http`).
- Retry classification and backoff (`retry`).
"""
