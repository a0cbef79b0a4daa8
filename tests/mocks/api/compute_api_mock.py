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
Mock for compute engine api
"""
import copy

from tests.mocks.api.discovery_mock import (
    RequestMock,
    http_error,
    not_found,
    page,
)

COMPUTE_URL = "https://www.googleapis.com/compute/v1/projects/test-project"


class ComputeApiMock:
    """
    Mock for compute engine api, every operation finishes on first poll
    unless `operation_errors` is set
    """

    def __init__(self):
        self.networks_data = {}
        self.firewalls_data = {}
        self.subnetworks_data = {}
        self.region_polls = []
        self.operation_errors = []
        self.requests = []
        self._operations = 0

    def networks(self):
        return _Collection(self, self.networks_data, "network", "networks")

    def firewalls(self):
        return _Collection(self, self.firewalls_data, "firewall", "firewalls")

    def subnetworks(self):
        return _Subnetworks(self)

    def globalOperations(self):
        return _GlobalOperations(self)

    def regionOperations(self):
        return _GlobalOperations(self)

    def operation(self, target: str, region: str = None) -> RequestMock:
        self._operations += 1
        operation = {
            "name": f"operation-{self._operations}",
            "status": "RUNNING",
            "targetLink": target,
        }
        if region is not None:
            operation["region"] = f"{COMPUTE_URL}/regions/{region}"
        return RequestMock(operation)


class _Collection:
    def __init__(self, api: ComputeApiMock, data: dict, key: str, path: str):
        self._api = api
        self._data = data
        self._key = key
        self._path = path

    def get(self, project, **kwargs):
        name = kwargs[self._key]
        if name not in self._data:
            return not_found()
        return RequestMock(self._data[name])

    def insert(self, project, body):
        self._api.requests.append(("insert", copy.deepcopy(body)))
        self_link = f"{COMPUTE_URL}/global/{self._path}/{body['name']}"
        self._data[body["name"]] = {
            **body,
            "id": str(1000 + len(self._data)),
            "selfLink": self_link,
        }
        return self._api.operation(self_link)

    def patch(self, project, body, **kwargs):
        self._api.requests.append(("patch", copy.deepcopy(body)))
        self._data[kwargs[self._key]].update(body)
        return self._api.operation(self._data[kwargs[self._key]]["selfLink"])

    def delete(self, project, **kwargs):
        item = self._data.pop(kwargs[self._key])
        self._api.requests.append(("delete", kwargs[self._key]))
        return self._api.operation(item["selfLink"])

    def list(self, project, pageToken=None):
        items = sorted(self._data.values(), key=lambda item: item["name"])
        return RequestMock(page(items, pageToken, 1, "items"))


class _GlobalOperations:
    def __init__(self, api: ComputeApiMock):
        self._api = api

    def get(self, project, operation, region=None):
        if region is not None:
            self._api.region_polls.append(region)
        result = {"name": operation, "status": "DONE"}

        if self._api.operation_errors:
            result["error"] = {
                "errors": [
                    {"code": "INVALID", "message": message}
                    for message in self._api.operation_errors
                ]
            }

        return RequestMock(result)


class _Subnetworks:
    def __init__(self, api: ComputeApiMock):
        self._api = api

    def get(self, project, region, subnetwork):
        if (region, subnetwork) not in self._api.subnetworks_data:
            return not_found()
        return RequestMock(self._api.subnetworks_data[(region, subnetwork)])

    def insert(self, project, region, body):
        self._api.requests.append(("insert", copy.deepcopy(body)))
        self_link = (
            f"{COMPUTE_URL}/regions/{region}/subnetworks/{body['name']}"
        )
        self._api.subnetworks_data[(region, body["name"])] = {
            "privateIpGoogleAccess": False,
            **body,
            "id": str(2000 + len(self._api.subnetworks_data)),
            "region": f"{COMPUTE_URL}/regions/{region}",
            "selfLink": self_link,
            "gatewayAddress": "10.0.0.1",
            "fingerprint": "fp-1",
        }
        return self._api.operation(self_link, region)

    def patch(self, project, region, subnetwork, body):
        self._api.requests.append(("patch", copy.deepcopy(body)))
        current = self._api.subnetworks_data[(region, subnetwork)]
        if body.get("fingerprint") != current["fingerprint"]:
            return RequestMock(error=http_error(412))

        current.update({k: v for k, v in body.items() if k != "fingerprint"})
        current["fingerprint"] = f"fp-{int(current['fingerprint'][3:]) + 1}"
        return self._api.operation(current["selfLink"], region)

    def setPrivateIpGoogleAccess(self, project, region, subnetwork, body):
        self._api.requests.append(("setPrivateIpGoogleAccess", body))
        current = self._api.subnetworks_data[(region, subnetwork)]
        current.update(body)
        return self._api.operation(current["selfLink"], region)

    def delete(self, project, region, subnetwork):
        self._api.requests.append(("delete", subnetwork))
        item = self._api.subnetworks_data.pop((region, subnetwork))
        return self._api.operation(item["selfLink"], region)

    def in_region(self, region) -> list[dict]:
        return [
            copy.deepcopy(item)
            for (item_region, _), item in sorted(
                self._api.subnetworks_data.items()
            )
            if item_region == region
        ]

    def list(self, project, region, pageToken=None):
        items = self.in_region(region)
        return RequestMock(page(items, pageToken, 1, "items"))

    def aggregatedList(self, project, pageToken=None):
        regions = sorted({region for region, _ in self._api.subnetworks_data})
        start = int(pageToken or 0)
        result = {"items": {}}

        # one region per page
        for region in regions[start:start + 1]:
            result["items"][f"regions/{region}"] = {
                "subnetworks": self.in_region(region)
            }

        if start + 1 < len(regions):
            result["nextPageToken"] = str(start + 1)

        return RequestMock(result)
