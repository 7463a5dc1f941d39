"""
wiwebb_data.devserver

Development backend: the REST endpoints served from the simulated store.
"""

from wiwebb_data.devserver.app import create_app

__all__ = ["create_app"]
