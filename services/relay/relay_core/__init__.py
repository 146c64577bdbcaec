from .cache import TTLCache, price_cache_key
from .config import Settings, load_settings
from .errors import ErrorKind, RelayError
from .extraction import ExtractionFailure, ModelJson, parse_model_json
from .identity import GoogleIdentityVerifier, IdentityVerifier
from .links import LinkLivenessChecker, LinkStatus, LivenessVerdict
from .service import RelayService

__all__ = [
    "ErrorKind",
    "ExtractionFailure",
    "GoogleIdentityVerifier",
    "IdentityVerifier",
    "LinkLivenessChecker",
    "LinkStatus",
    "LivenessVerdict",
    "ModelJson",
    "RelayError",
    "RelayService",
    "Settings",
    "TTLCache",
    "load_settings",
    "parse_model_json",
    "price_cache_key",
]
