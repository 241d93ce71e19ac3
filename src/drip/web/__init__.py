"""HTTP interface for DRIP."""

from .app import FaucetServer, create_app

__all__ = ["FaucetServer", "create_app"]
