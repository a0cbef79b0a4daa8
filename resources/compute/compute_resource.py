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
Base class for Compute Engine resources, which are changed through
zonal, regional or global operations.
"""

from common.api import ClientKind
from common.entities import GoogleResource
from common.exceptions import ProviderException
from common.utils import Waiter
from common.utils.naming import extract_name

OPERATION_TIMEOUT = 60


def format_operation_error(error: dict) -> str:
    return "\n".join(
        item.get("message", "") for item in error.get("errors", [])
    )


class ComputeResource(GoogleResource):
    """
    A Compute Engine resource.
    """

    def create_compute_client(self):
        return self.create_client(ClientKind.COMPUTE)

    def wait_for_completion(self, client, operation: dict) -> dict:
        """
        Polls an operation until it is DONE. Raises ProviderException when
        the operation reports errors.
        """

        def poll() -> dict | None:
            if operation.get("zone"):
                request = client.zoneOperations().get(
                    project=self.project_id,
                    zone=extract_name(operation["zone"]),
                    operation=operation["name"],
                )
            elif operation.get("region"):
                request = client.regionOperations().get(
                    project=self.project_id,
                    region=extract_name(operation["region"]),
                    operation=operation["name"],
                )
            else:
                request = client.globalOperations().get(
                    project=self.project_id, operation=operation["name"]
                )

            response = request.execute()

            if response.get("error"):
                raise ProviderException(
                    format_operation_error(response["error"])
                )

            return response if response.get("status") == "DONE" else None

        return Waiter(at_most=OPERATION_TIMEOUT).until(
            poll, f"operation {operation['name']}"
        )
