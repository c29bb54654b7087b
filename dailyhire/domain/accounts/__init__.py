"""Principal profiles: who is signed in and what others can see about them"""

from .router import router

__all__ = ["router"]
