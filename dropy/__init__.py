from .client import Client
from .core.exceptions import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    DropyError,
    ExhaustedInputError,
)
from .core.models import CommitInfo, FileInfo, WriteMode
from .core.upload.strategy import UploadLimits
from .core.upload.uploader import UploadPlan

__version__ = "0.1.0"

__all__ = [
    "Client",
    "CommitInfo",
    "FileInfo",
    "WriteMode",
    "UploadLimits",
    "UploadPlan",
    "DropyError",
    "ApiError",
    "AuthenticationError",
    "ConfigurationError",
    "ExhaustedInputError",
]
