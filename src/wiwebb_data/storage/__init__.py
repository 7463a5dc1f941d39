"""
wiwebb_data.storage

Local persistence package.

Responsibilities:
- Async SQLAlchemy engine/session helpers for the local key/value store.
- Persist the credential and last-known profile snapshot across relaunches.
"""
