from .config import Settings, get_settings
from .errors import ConfigurationError, DuplicateDocumentError, LexRagError

__all__ = [
    "Settings",
    "get_settings",
    "LexRagError",
    "ConfigurationError",
    "DuplicateDocumentError",
]
