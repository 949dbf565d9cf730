"""Shared helpers: logging setup and slug generation."""

from src.utils.logger import setup_logger
from src.utils.slug import slugify

__all__ = ["setup_logger", "slugify"]
