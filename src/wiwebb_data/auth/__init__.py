"""
wiwebb_data.auth

Authentication package.

Responsibilities:
- Credential/session value objects (`models`).
- Identity providers: remote DRF token flow and the simulated provider.
- The session/auth coordinator that owns "who is logged in".
"""
