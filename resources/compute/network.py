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
This module provides the VPC network resource and finder. Networks are
created in custom subnet mode.
"""

from typing import Literal, Optional, Self

from googleapiclient.errors import HttpError
from pydantic import field_validator

from common.api import ClientKind
from common.entities import GoogleFinder, output_field, updatable_field
from common.exceptions import is_not_found
from common.utils import list_items
from common.utils.naming import extract_name
from resources.compute.compute_resource import ComputeResource


class NetworkResource(ComputeResource):
    """
    A VPC network.
    """

    resource_type = "compute-network"

    name: str
    description: Optional[str] = None
    routing_mode: Literal["GLOBAL", "REGIONAL"] = updatable_field()

    id: Optional[str] = output_field()
    self_link: Optional[str] = output_field()

    @field_validator("routing_mode", mode="before")
    @classmethod
    def upper_case_routing_mode(cls, value):
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        """
        Accepts a network name or a network url.
        """
        if "/" in resource_id:
            return cls.model_construct(
                name=extract_name(resource_id), self_link=resource_id
            )
        return cls.model_construct(name=resource_id)

    def copy_from(self, model: dict) -> None:
        self.id = str(model["id"]) if model.get("id") else None
        self.name = model["name"]
        self.description = model.get("description")
        self.routing_mode = model.get("routingConfig", {}).get("routingMode")
        self.self_link = model.get("selfLink")

    def do_refresh(self) -> bool:
        client = self.create_compute_client()

        try:
            network = (
                client.networks()
                .get(project=self.project_id, network=self.name)
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return False
            raise

        self.copy_from(network)
        return True

    def do_create(self) -> None:
        client = self.create_compute_client()
        network = {
            "name": self.name,
            "autoCreateSubnetworks": False,
            "routingConfig": {"routingMode": self.routing_mode},
        }
        if self.description is not None:
            network["description"] = self.description

        operation = (
            client.networks()
            .insert(project=self.project_id, body=network)
            .execute()
        )
        self.wait_for_completion(client, operation)
        self.refresh()

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_compute_client()
        operation = (
            client.networks()
            .patch(
                project=self.project_id,
                network=self.name,
                body={"routingConfig": {"routingMode": self.routing_mode}},
            )
            .execute()
        )
        self.wait_for_completion(client, operation)
        self.refresh()

    def do_delete(self) -> None:
        client = self.create_compute_client()
        operation = (
            client.networks()
            .delete(project=self.project_id, network=self.name)
            .execute()
        )
        self.wait_for_completion(client, operation)


class NetworkFinder(GoogleFinder):
    """
    Finds networks by `name`, or every network of the project.
    """

    resource_type = "compute-network"
    resource_class = NetworkResource
    client_kind = ClientKind.COMPUTE
    filter_names = ("name",)

    def find_all_google(self, client) -> list[dict]:
        return list(list_items(client.networks().list, project=self.project_id))

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        try:
            return [
                client.networks()
                .get(project=self.project_id, network=filters["name"])
                .execute()
            ]
        except HttpError as e:
            if is_not_found(e):
                return []
            raise
