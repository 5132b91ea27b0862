from .record_factory import build_records

__all__ = ["build_records"]
