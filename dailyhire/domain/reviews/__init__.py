"""Post-job reviews and the derived worker rating"""

from .router import router

__all__ = ["router"]
