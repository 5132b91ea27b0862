from .http_prober import HttpProber, SuccessPolicy, is_success_status
from .uri_validator import SUPPORTED_SCHEMES, validate_url

__all__ = [
    "HttpProber",
    "SUPPORTED_SCHEMES",
    "SuccessPolicy",
    "is_success_status",
    "validate_url",
]
