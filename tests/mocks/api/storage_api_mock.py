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
Mock for cloud storage json api
"""
from tests.mocks.api.discovery_mock import RequestMock, not_found, page


class StorageApiMock:
    """
    Mock for cloud storage json api, keeps buckets and objects in memory
    """

    def __init__(self):
        self.buckets_data = {}
        self.objects_data = {}
        self.patches = []

    def buckets(self):
        return _Buckets(self)

    def objects(self):
        return _Objects(self)


class _Buckets:
    def __init__(self, api: StorageApiMock):
        self._api = api

    def get(self, bucket, projection=None):
        if bucket not in self._api.buckets_data:
            return not_found()
        return RequestMock(self._api.buckets_data[bucket])

    def insert(self, project, body):
        bucket = {
            "location": "US",
            "storageClass": "STANDARD",
            **body,
            "id": body["name"],
            "selfLink": (
                "https://www.googleapis.com/storage/v1/b/" + body["name"]
            ),
            "timeCreated": "2025-01-01T00:00:00.000Z",
            "projectNumber": "123",
        }
        self._api.buckets_data[body["name"]] = bucket
        return RequestMock(bucket)

    def patch(self, bucket, body):
        self._api.patches.append(body)
        current = self._api.buckets_data[bucket]

        for key, value in body.items():
            if value is None:
                current.pop(key, None)
            else:
                current[key] = value

        return RequestMock(current)

    def delete(self, bucket):
        if bucket not in self._api.buckets_data:
            return not_found()
        del self._api.buckets_data[bucket]
        return RequestMock("")

    def list(self, project, pageToken=None, projection=None):
        buckets = sorted(
            self._api.buckets_data.values(), key=lambda b: b["name"]
        )
        return RequestMock(page(buckets, pageToken, 2, "items"))


class _Objects:
    def __init__(self, api: StorageApiMock):
        self._api = api

    def list(self, bucket, prefix=None, pageToken=None, maxResults=1000):
        objects = [
            {"name": name, "bucket": bucket}
            for (object_bucket, name) in sorted(self._api.objects_data)
            if object_bucket == bucket and name.startswith(prefix or "")
        ]
        return RequestMock(page(objects, pageToken, maxResults, "items"))

    def get_media(self, bucket, object):
        if (bucket, object) not in self._api.objects_data:
            return not_found()
        return RequestMock(self._api.objects_data[(bucket, object)])

    def insert(self, bucket, name, media_body):
        content = media_body.getbytes(0, media_body.size())
        self._api.objects_data[(bucket, name)] = content
        return RequestMock({"bucket": bucket, "name": name})

    def delete(self, bucket, object):
        if (bucket, object) not in self._api.objects_data:
            return not_found()
        del self._api.objects_data[(bucket, object)]
        return RequestMock("")
