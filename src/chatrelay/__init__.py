"""
chatrelay: streaming chat relay with demo fallback and speech synthesis
"""

__version__ = "1.0.0"

from chatrelay.config import Settings

__all__ = ["Settings", "__version__"]
