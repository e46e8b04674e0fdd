# pyright: standard

"""bq-backup: bq_backup/endpoint/gcs.py
Object store backed by a Google Cloud Storage bucket.
"""

import logging
from typing import Iterator

from google.cloud import storage

from .common import ObjectStore, StoredObject

logger = logging.getLogger(__name__)


class GCSObjectStore(ObjectStore):
    """A GCS bucket holding the table backups."""

    def __init__(self, bucket: str, client=None) -> None:
        super().__init__(bucket)
        self.client = client or storage.Client()
        self._bucket = self.client.bucket(bucket)

    def uri(self, path: str) -> str:
        return f"gs://{self.bucket}/{path}"

    def list_objects(self, prefix: str) -> Iterator[StoredObject]:
        for blob in self.client.list_blobs(self.bucket, prefix=prefix):
            yield StoredObject(name=blob.name, size=blob.size or 0)

    def delete_object(self, name: str) -> None:
        self._bucket.blob(name).delete()

    def close(self) -> None:
        self.client.close()
