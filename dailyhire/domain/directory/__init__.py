"""Categories and worker profiles: the public catalog hirers search"""

from .router import router

__all__ = ["router"]
