"""Booking chat, direct messages, attachments and unread counts"""

from .router import router

__all__ = ["router"]
