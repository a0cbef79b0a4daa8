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
This module provides the regional subnetwork resource and finder.

Flow logs and secondary ranges are changed by patching the subnetwork
with its current fingerprint. Private Google access has its own method.
"""

from typing import Literal, Optional, Self

from googleapiclient.errors import HttpError
from pydantic import Field, model_validator

from common.api import ClientKind
from common.entities import (
    GoogleConfig,
    GoogleFinder,
    google_body,
    google_values,
    output_field,
    updatable_field,
)
from common.exceptions import is_not_found
from common.utils import list_aggregated_items, list_items
from common.utils.naming import (
    extract_name,
    get_segment,
    global_network_url,
)
from resources.compute.compute_resource import ComputeResource
from resources.compute.network import NetworkResource

CIDR_PATTERN = r"^\d{1,3}(\.\d{1,3}){3}/\d{1,2}$"


class SubnetworkSecondaryRange(GoogleConfig):
    range_name: str = Field(pattern=r"^[a-z][a-z0-9-]{0,62}$")
    ip_cidr_range: str = Field(pattern=CIDR_PATTERN)

    def primary_key(self) -> str:
        return self.range_name


class SubnetworkLogConfig(GoogleConfig):
    """
    VPC flow logs settings.
    """

    enable: bool = updatable_field(default=True)
    aggregation_interval: Optional[
        Literal[
            "INTERVAL_5_SEC",
            "INTERVAL_30_SEC",
            "INTERVAL_1_MIN",
            "INTERVAL_5_MIN",
            "INTERVAL_10_MIN",
            "INTERVAL_15_MIN",
        ]
    ] = updatable_field(default=None)
    flow_sampling: Optional[float] = updatable_field(
        default=None, ge=0, le=1
    )
    metadata: Optional[
        Literal[
            "INCLUDE_ALL_METADATA",
            "EXCLUDE_ALL_METADATA",
            "CUSTOM_METADATA",
        ]
    ] = updatable_field(default=None)
    metadata_fields: list[str] = updatable_field(default_factory=list)

    @model_validator(mode="after")
    def validate_metadata_fields(self) -> Self:
        if self.metadata_fields and self.metadata != "CUSTOM_METADATA":
            raise ValueError(
                "'metadata_fields' cannot be set unless 'metadata' is set "
                "to 'CUSTOM_METADATA'"
            )
        return self

    def to_google(self) -> dict:
        body = super().to_google()
        if not self.metadata_fields:
            body.pop("metadataFields", None)
        return body


class SubnetworkResource(ComputeResource):
    """
    A regional subnetwork of a VPC network.
    """

    resource_type = "compute-subnetwork"
    id_field = "self_link"

    name: str = Field(pattern=r"^[a-z]([-a-z0-9]*[a-z0-9])?$")
    description: Optional[str] = None
    network: NetworkResource
    region: str
    ip_cidr_range: str = Field(pattern=CIDR_PATTERN)
    private_ip_google_access: bool = updatable_field(default=False)
    log_config: Optional[SubnetworkLogConfig] = updatable_field(default=None)
    secondary_ip_ranges: list[SubnetworkSecondaryRange] = updatable_field(
        default_factory=list
    )

    id: Optional[str] = output_field()
    self_link: Optional[str] = output_field()
    gateway_address: Optional[str] = output_field()
    fingerprint: Optional[str] = output_field()

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        """
        Accepts a subnetwork url.
        """
        return cls.model_construct(
            name=extract_name(resource_id),
            region=get_segment(resource_id, "regions"),
            self_link=resource_id,
        )

    def copy_from(self, model: dict) -> None:
        values = google_values(type(self), model)
        values["network"] = self.find_by_id(NetworkResource, model["network"])
        values["region"] = extract_name(model["region"])
        self.copy_values(values)

    def to_subnetwork(self, fields: set[str] | None = None) -> dict:
        names = set(type(self).model_fields) - {"network", "region"}
        if fields is not None:
            names &= fields

        subnetwork = google_body(self, names)

        if fields is None:
            subnetwork["network"] = self.network.self_link or (
                global_network_url(self.project_id, self.network.name)
            )

        return subnetwork

    def do_refresh(self) -> bool:
        client = self.create_compute_client()

        try:
            subnetwork = (
                client.subnetworks()
                .get(
                    project=self.project_id,
                    region=self.region,
                    subnetwork=self.name,
                )
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return False
            raise

        self.copy_from(subnetwork)
        return True

    def do_create(self) -> None:
        client = self.create_compute_client()
        operation = (
            client.subnetworks()
            .insert(
                project=self.project_id,
                region=self.region,
                body=self.to_subnetwork(),
            )
            .execute()
        )
        self.wait_for_completion(client, operation)
        self.refresh()

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_compute_client()
        subnetworks = client.subnetworks()

        if "private_ip_google_access" in changed_fields:
            operation = subnetworks.setPrivateIpGoogleAccess(
                project=self.project_id,
                region=self.region,
                subnetwork=self.name,
                body={"privateIpGoogleAccess": self.private_ip_google_access},
            ).execute()
            self.wait_for_completion(client, operation)

        patched = changed_fields & {"log_config", "secondary_ip_ranges"}
        if patched:
            body = self.to_subnetwork(patched)
            # setPrivateIpGoogleAccess changes the fingerprint
            body["fingerprint"] = subnetworks.get(
                project=self.project_id,
                region=self.region,
                subnetwork=self.name,
            ).execute()["fingerprint"]
            if "log_config" in patched and self.log_config is None:
                body["logConfig"] = {"enable": False}

            operation = subnetworks.patch(
                project=self.project_id,
                region=self.region,
                subnetwork=self.name,
                body=body,
            ).execute()
            self.wait_for_completion(client, operation)

        self.refresh()

    def do_delete(self) -> None:
        client = self.create_compute_client()
        operation = (
            client.subnetworks()
            .delete(
                project=self.project_id,
                region=self.region,
                subnetwork=self.name,
            )
            .execute()
        )
        self.wait_for_completion(client, operation)


class SubnetworkFinder(GoogleFinder):
    """
    Finds subnetworks by `region` and `name`, or the subnetworks of every
    region.
    """

    resource_type = "compute-subnetwork"
    resource_class = SubnetworkResource
    client_kind = ClientKind.COMPUTE
    filter_names = ("region", "name")

    def find_all_google(self, client) -> list[dict]:
        return list(
            list_aggregated_items(
                client.subnetworks().aggregatedList,
                "subnetworks",
                project=self.project_id,
            )
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        if "region" not in filters:
            return [
                subnetwork
                for subnetwork in self.find_all_google(client)
                if subnetwork["name"] == filters["name"]
            ]

        if "name" not in filters:
            return list(
                list_items(
                    client.subnetworks().list,
                    project=self.project_id,
                    region=filters["region"],
                )
            )

        try:
            return [
                client.subnetworks()
                .get(
                    project=self.project_id,
                    region=filters["region"],
                    subnetwork=filters["name"],
                )
                .execute()
            ]
        except HttpError as e:
            if is_not_found(e):
                return []
            raise
