"""Per-worker, per-day availability ledger and the booking date check"""

from .router import router

__all__ = ["router"]
