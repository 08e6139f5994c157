"""HTTP API for Referly."""

from referly.api.main import create_app

__all__ = ["create_app"]
