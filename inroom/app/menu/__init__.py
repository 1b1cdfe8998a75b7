"""Menu catalog defaults."""

from .seed import SAMPLE_MENU

__all__ = ["SAMPLE_MENU"]
