"""Blob storage data models."""

from dataclasses import dataclass
from datetime import datetime

DEFAULT_ACCOUNT_URL = "http://127.0.0.1:10000/devstoreaccount1"
_SUBJECT_PREFIX = "/blobServices/default/containers/"


@dataclass(frozen=True)
class BlobHandle:
    """Address of an uploaded object."""

    container: str
    name: str
    account_url: str = DEFAULT_ACCOUNT_URL

    @property
    def url(self) -> str:
        return f"{self.account_url.rstrip('/')}/{self.container}/{self.name}"

    @property
    def subject(self) -> str:
        """Event subject in the storage-event format."""
        return f"{_SUBJECT_PREFIX}{self.container}/blobs/{self.name}"

    @classmethod
    def from_subject(
        cls, subject: str, account_url: str = DEFAULT_ACCOUNT_URL
    ) -> "BlobHandle":
        """Parse `/blobServices/default/containers/{c}/blobs/{name}`."""
        if not subject.startswith(_SUBJECT_PREFIX):
            raise ValueError(f"Unsupported blob subject: {subject}")

        container, sep, name = subject[len(_SUBJECT_PREFIX):].partition("/blobs/")
        if not sep or not container or not name:
            raise ValueError(f"Unsupported blob subject: {subject}")

        return cls(container=container, name=name, account_url=account_url)


@dataclass
class StoredBlob:
    """Blob content plus its properties."""

    handle: BlobHandle
    content: bytes
    content_type: str
    created_at: datetime

    @property
    def content_length(self) -> int:
        return len(self.content)


@dataclass
class UploadEventRecord:
    """Payload of an event describing an upload.

    client_request_id and request_id are NOT trace-correlated by the storage
    event system. On self-published events the producer seeds them from the
    trace and span ids so the payload stays self-describing.
    """

    api: str
    content_type: str
    content_length: int
    blob_type: str
    url: str
    client_request_id: str = ""
    request_id: str = ""

    def to_dict(self) -> dict:
        return {
            "api": self.api,
            "contentType": self.content_type,
            "contentLength": self.content_length,
            "blobType": self.blob_type,
            "url": self.url,
            "clientRequestId": self.client_request_id,
            "requestId": self.request_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UploadEventRecord":
        return cls(
            api=data.get("api") or "",
            content_type=data.get("contentType") or "",
            content_length=int(data.get("contentLength") or 0),
            blob_type=data.get("blobType") or "",
            url=data.get("url") or "",
            client_request_id=data.get("clientRequestId") or "",
            request_id=data.get("requestId") or "",
        )

    @classmethod
    def for_blob(cls, blob: StoredBlob, api: str = "PutBlob") -> "UploadEventRecord":
        return cls(
            api=api,
            content_type=blob.content_type,
            content_length=blob.content_length,
            blob_type="BlockBlob",
            url=blob.handle.url,
        )
