# Routers package

from . import uploads

__all__ = ["uploads"]
