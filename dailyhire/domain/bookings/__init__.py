"""Booking lifecycle: creation, status transitions, and who may see a booking"""

from .router import router

__all__ = ["router"]
