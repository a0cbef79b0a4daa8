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
This module provides the VPC firewall rule resource and finder.
"""

import re
from typing import Literal, Optional, Self

from googleapiclient.errors import HttpError
from pydantic import field_validator, model_validator

from common.api import ClientKind
from common.entities import (
    Diffable,
    GoogleFinder,
    output_field,
    updatable_field,
)
from common.exceptions import is_not_found
from common.utils import list_items
from common.utils.naming import global_network_url
from resources.compute.compute_resource import ComputeResource
from resources.compute.network import NetworkResource

PORT_PATTERN = re.compile(r"((?!(0))\d+(-[1-9]\d+)?)")


class FirewallAllowDenyRule(Diffable):
    """
    A protocol, and optionally ports, matched by a firewall rule.
    """

    protocol: str
    ports: list[str] = updatable_field(default_factory=list)

    @field_validator("protocol")
    @classmethod
    def lower_case_protocol(cls, value: str) -> str:
        return value.lower()

    @model_validator(mode="after")
    def validate_ports(self) -> Self:
        if self.ports and self.protocol not in ("tcp", "udp"):
            raise ValueError(
                "'ports' can only be set when 'protocol' is set to either "
                "'tcp' or 'udp'"
            )

        invalid = [port for port in self.ports if not _valid_port(port)]
        if invalid:
            raise ValueError(
                f"invalid entries {', '.join(invalid)}. Must be an integer "
                "or a valid range"
            )

        return self

    def primary_key(self) -> str:
        return self.protocol

    @classmethod
    def copy_from(cls, model: dict) -> Self:
        return cls.model_construct(
            protocol=model["IPProtocol"], ports=model.get("ports", [])
        )

    def to_google(self) -> dict:
        rule = {"IPProtocol": self.protocol}
        if self.ports:
            rule["ports"] = self.ports
        return rule


def _valid_port(port: str) -> bool:
    if not PORT_PATTERN.fullmatch(port):
        return False

    start, _, end = port.partition("-")
    return not end or int(start) < int(end)


class FirewallRuleResource(ComputeResource):
    """
    A VPC firewall rule.
    """

    resource_type = "compute-firewall-rule"

    name: str
    network: NetworkResource
    description: Optional[str] = updatable_field(default=None)
    rule_type: Literal["ALLOW", "DENY"]
    allowed: list[FirewallAllowDenyRule] = updatable_field(default_factory=list)
    denied: list[FirewallAllowDenyRule] = updatable_field(default_factory=list)
    direction: Literal["INGRESS", "EGRESS"]
    disabled: bool = updatable_field(default=False)
    priority: int = updatable_field(default=1000, ge=0, le=65535)
    destination_ranges: list[str] = updatable_field(default_factory=list)
    source_ranges: list[str] = updatable_field(default_factory=list)
    source_service_accounts: list[str] = updatable_field(default_factory=list)
    source_tags: list[str] = updatable_field(default_factory=list)
    target_service_accounts: list[str] = updatable_field(default_factory=list)
    target_tags: list[str] = updatable_field(default_factory=list)
    log_config: bool = updatable_field(default=False)

    id: Optional[str] = output_field()
    self_link: Optional[str] = output_field()

    @field_validator("rule_type", "direction", mode="before")
    @classmethod
    def upper_case(cls, value):
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def validate_rule(self) -> Self:
        if self.is_stub():
            return self

        errors = []

        if self.rule_type == "ALLOW" and not self.allowed:
            errors.append(
                "'allowed' needs to be set when 'rule_type' set to 'ALLOW'."
            )
        if self.rule_type == "DENY" and not self.denied:
            errors.append(
                "'denied' needs to be set when 'rule_type' set to 'DENY'."
            )

        if self.direction == "INGRESS":
            if self.destination_ranges:
                errors.append(
                    "'destination_ranges' cannot be set when 'direction' "
                    "set to 'INGRESS'"
                )
            if not (
                self.source_service_accounts
                or self.source_tags
                or self.source_ranges
            ):
                errors.append(
                    "At least one of 'source_service_accounts', "
                    "'source_tags' or 'source_ranges' is required when "
                    "'direction' set to 'INGRESS'"
                )
        else:
            for name in (
                "source_ranges",
                "source_tags",
                "source_service_accounts",
            ):
                if getattr(self, name):
                    errors.append(
                        f"'{name}' cannot be set when 'direction' set to "
                        "'EGRESS'"
                    )
            if not self.destination_ranges:
                errors.append(
                    "'destination_ranges' is required when 'direction' set "
                    "to 'EGRESS'"
                )

        if errors:
            raise ValueError(" ".join(errors))

        return self

    def copy_from(self, model: dict) -> None:
        self.name = model["name"]
        self.network = self.find_by_id(NetworkResource, model["network"])
        self.description = model.get("description")
        self.direction = model.get("direction")
        self.disabled = model.get("disabled", False)
        self.priority = model.get("priority")
        self.destination_ranges = model.get("destinationRanges", [])
        self.source_ranges = model.get("sourceRanges", [])
        self.source_service_accounts = model.get("sourceServiceAccounts", [])
        self.source_tags = model.get("sourceTags", [])
        self.target_service_accounts = model.get("targetServiceAccounts", [])
        self.target_tags = model.get("targetTags", [])
        self.log_config = model.get("logConfig", {}).get("enable", False)
        self.allowed = [
            FirewallAllowDenyRule.copy_from(rule)
            for rule in model.get("allowed", [])
        ]
        self.denied = [
            FirewallAllowDenyRule.copy_from(rule)
            for rule in model.get("denied", [])
        ]
        self.rule_type = "DENY" if self.denied else "ALLOW"
        self.id = str(model["id"]) if model.get("id") else None
        self.self_link = model.get("selfLink")

    def to_firewall(self) -> dict:
        firewall = {
            "name": self.name,
            "network": self.network.self_link
            or global_network_url(self.project_id, self.network.name),
            "direction": self.direction,
            "disabled": self.disabled,
            "priority": self.priority,
            "logConfig": {"enable": self.log_config},
            "destinationRanges": self.destination_ranges,
            "sourceRanges": self.source_ranges,
            "sourceServiceAccounts": self.source_service_accounts,
            "sourceTags": self.source_tags,
            "targetServiceAccounts": self.target_service_accounts,
            "targetTags": self.target_tags,
        }

        if self.description is not None:
            firewall["description"] = self.description

        if self.rule_type == "ALLOW":
            firewall["allowed"] = [rule.to_google() for rule in self.allowed]
        else:
            firewall["denied"] = [rule.to_google() for rule in self.denied]

        return firewall

    def do_refresh(self) -> bool:
        client = self.create_compute_client()

        try:
            firewall = (
                client.firewalls()
                .get(project=self.project_id, firewall=self.name)
                .execute()
            )
        except HttpError as e:
            if is_not_found(e):
                return False
            raise

        self.copy_from(firewall)
        return True

    def do_create(self) -> None:
        client = self.create_compute_client()
        operation = (
            client.firewalls()
            .insert(project=self.project_id, body=self.to_firewall())
            .execute()
        )
        self.wait_for_completion(client, operation)
        self.refresh()

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_compute_client()
        operation = (
            client.firewalls()
            .patch(
                project=self.project_id,
                firewall=self.name,
                body=self.to_firewall(),
            )
            .execute()
        )
        self.wait_for_completion(client, operation)
        self.refresh()

    def do_delete(self) -> None:
        client = self.create_compute_client()
        operation = (
            client.firewalls()
            .delete(project=self.project_id, firewall=self.name)
            .execute()
        )
        self.wait_for_completion(client, operation)


class FirewallRuleFinder(GoogleFinder):
    """
    Finds firewall rules by `name`, or every firewall rule of the project.
    """

    resource_type = "compute-firewall-rule"
    resource_class = FirewallRuleResource
    client_kind = ClientKind.COMPUTE
    filter_names = ("name",)

    def find_all_google(self, client) -> list[dict]:
        return list(
            list_items(client.firewalls().list, project=self.project_id)
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        try:
            return [
                client.firewalls()
                .get(project=self.project_id, firewall=filters["name"])
                .execute()
            ]
        except HttpError as e:
            if is_not_found(e):
                return []
            raise
