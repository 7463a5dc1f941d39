"""
wiwebb_data.resources

Typed data-access functions, one module per resource family.

Responsibilities:
- Expose identical live and simulated implementations per family.
- Bind the active implementation once (`selector`).
"""

from wiwebb_data.resources.selector import Resources, select_identity_provider, select_resources

__all__ = ["Resources", "select_identity_provider", "select_resources"]
