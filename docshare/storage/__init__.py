from docshare.storage.blob_storage import (
    BlobStorage,
    BlobStorageError,
    LocalBlobStorage,
    S3BlobStorage,
    get_blob_storage,
)

__all__ = [
    "BlobStorage",
    "BlobStorageError",
    "LocalBlobStorage",
    "S3BlobStorage",
    "get_blob_storage",
]
