from .prober import ProberPort, UriValidatorPort
from .record_provider import RecordProviderPort
from .result_sink import ResultSinkPort

__all__ = [
    "ProberPort",
    "RecordProviderPort",
    "ResultSinkPort",
    "UriValidatorPort",
]
