# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
This module provides the backends that store state files.

Classes:
- LocalFileBackend: Stores state files in a local directory.
- GoogleStorageFileBackend: Stores state files as Cloud Storage objects.
- StorageObjectIterator: Pages through the objects of a bucket.
"""

import os

from googleapiclient.errors import HttpError
from googleapiclient.http import MediaInMemoryUpload

from common.utils import get_logger

STATE_SUFFIX = ".json"


class LocalFileBackend:
    """
    Stores state files in a local directory.
    """

    def __init__(self, directory: str) -> None:
        self._directory = directory

    def _path(self, file: str) -> str:
        return os.path.join(self._directory, file)

    def list(self) -> list[str]:
        if not os.path.isdir(self._directory):
            return []

        return sorted(
            name
            for name in os.listdir(self._directory)
            if name.endswith(STATE_SUFFIX)
        )

    def read(self, file: str) -> str | None:
        """
        Returns the content of a state file, or None if it does not exist.
        """
        try:
            with open(self._path(file), encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def write(self, file: str, content: str) -> None:
        os.makedirs(self._directory, exist_ok=True)
        with open(self._path(file), "w", encoding="utf-8") as f:
            f.write(content)

    def delete(self, file: str) -> None:
        if os.path.exists(self._path(file)):
            os.remove(self._path(file))


class StorageObjectIterator:
    """
    Iterates over the objects of a bucket, one page of 100 objects at a
    time. A failed listing is logged and ends the iteration.
    """

    PAGE_SIZE = 100

    def __init__(self, client, bucket: str, prefix: str | None) -> None:
        self._client = client
        self._bucket = bucket
        self._prefix = prefix
        self._items = []
        self._index = 0
        self._next_page_token = None
        self._started = False
        self._logger = get_logger()

    def __iter__(self):
        return self

    def __next__(self) -> dict:
        if self._index < len(self._items):
            item = self._items[self._index]
            self._index += 1
            return item

        if self._started and self._next_page_token is None:
            raise StopIteration

        self._fetch_page()

        if not self._items:
            raise StopIteration

        return next(self)

    def _fetch_page(self) -> None:
        self._started = True

        try:
            response = (
                self._client.objects()
                .list(
                    bucket=self._bucket,
                    prefix=self._prefix,
                    pageToken=self._next_page_token,
                    maxResults=self.PAGE_SIZE,
                )
                .execute()
            )
        except HttpError as e:
            self._logger.error(
                "Failed to retrieve storage objects: %s %s %s: %s",
                self._bucket,
                self._prefix,
                self._next_page_token,
                e,
            )
            self._items = []
            self._next_page_token = None
            return

        self._items = response.get("items", [])
        self._index = 0
        self._next_page_token = response.get("nextPageToken")


class GoogleStorageFileBackend:
    """
    Stores state files as objects of a Cloud Storage bucket, optionally
    below a name prefix.
    """

    def __init__(self, client, bucket: str, prefix: str | None = None) -> None:
        self._client = client
        self.bucket = bucket
        self.prefix = prefix.strip("/") if prefix else None
        self._logger = get_logger()

    def _prefixed(self, file: str) -> str:
        return f"{self.prefix}/{file}" if self.prefix else file

    def _remove_prefix(self, name: str) -> str:
        if self.prefix and name.startswith(f"{self.prefix}/"):
            return name[len(self.prefix) + 1:]
        return name

    def list(self) -> list[str]:
        return [
            self._remove_prefix(item["name"])
            for item in StorageObjectIterator(
                self._client, self.bucket, self._prefixed("")
            )
            if item["name"].endswith(STATE_SUFFIX)
        ]

    def read(self, file: str) -> str | None:
        """
        Returns the content of a state object, or None if it does not
        exist.
        """
        try:
            content = (
                self._client.objects()
                .get_media(bucket=self.bucket, object=self._prefixed(file))
                .execute()
            )
        except HttpError as e:
            if e.status_code == 404:
                return None
            raise

        if isinstance(content, bytes):
            return content.decode("utf-8")
        return content

    def write(self, file: str, content: str) -> None:
        self._logger.info(
            "Uploading state to gs://%s/%s", self.bucket, self._prefixed(file)
        )
        self._client.objects().insert(
            bucket=self.bucket,
            name=self._prefixed(file),
            media_body=MediaInMemoryUpload(
                content.encode("utf-8"), mimetype="application/json"
            ),
        ).execute()

    def delete(self, file: str) -> None:
        self._client.objects().delete(
            bucket=self.bucket, object=self._prefixed(file)
        ).execute()
