"""Producer module."""

from .publisher import EventPublisher
from .uploader import IUploader, Uploader, UploadResult

__all__ = ["EventPublisher", "IUploader", "Uploader", "UploadResult"]
