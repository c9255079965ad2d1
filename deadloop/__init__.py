"""deadloop - find functions that are only referenced by each other."""
from .config import __version__

__all__ = ["__version__"]
