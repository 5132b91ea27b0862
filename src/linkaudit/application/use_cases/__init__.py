from .check_links import CheckRunner

__all__ = ["CheckRunner"]
