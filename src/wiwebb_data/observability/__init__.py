"""
wiwebb_data.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for the dev server.
"""
