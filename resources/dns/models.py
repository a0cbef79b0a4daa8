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
Sub-configurations of Cloud DNS managed zones and policies.
"""

from typing import Literal, Optional, Self

from pydantic import Field

from common.entities import GoogleConfig, updatable_field
from common.utils.naming import global_network_url
from resources.compute.network import NetworkResource


class KeySpec(GoogleConfig):
    """
    Parameters of a DNSSEC key.
    """

    key_type: Literal["keySigning", "zoneSigning"]
    algorithm: Optional[
        Literal[
            "ecdsap256sha256",
            "ecdsap384sha384",
            "rsasha1",
            "rsasha256",
            "rsasha512",
        ]
    ] = updatable_field(default=None)
    key_length: Optional[int] = updatable_field(default=None)

    def primary_key(self) -> str:
        return self.key_type


class ZoneDnsSecConfig(GoogleConfig):
    default_key_specs: list[KeySpec] = updatable_field(default_factory=list)
    non_existence: Optional[Literal["nsec", "nsec3"]] = updatable_field(
        default=None
    )
    state: Optional[Literal["on", "off", "transfer"]] = updatable_field(
        default=None
    )

    def to_google(self) -> dict:
        body = super().to_google()
        if not self.default_key_specs:
            body.pop("defaultKeySpecs", None)
        return body


class ZoneForwardingConfigNameServerTarget(GoogleConfig):
    ipv4_address: str

    def primary_key(self) -> str:
        return self.ipv4_address


class ZoneForwardingConfig(GoogleConfig):
    target_name_servers: list[ZoneForwardingConfigNameServerTarget] = Field(
        default_factory=list
    )


class ZonePrivateVisibilityConfigNetwork(GoogleConfig):
    """
    A VPC network from which a private zone is visible.
    """

    network: NetworkResource

    def primary_key(self) -> str:
        return self.network.reference_id()

    def to_google(self) -> dict:
        return {
            "networkUrl": self.network.self_link
            or global_network_url(
                self.network.project_id, self.network.reference_id()
            )
        }

    @classmethod
    def from_google(cls, data: dict | None) -> Self | None:
        if data is None:
            return None
        return cls.model_construct(
            network=NetworkResource.from_id(data["networkUrl"])
        )


class ZonePrivateVisibilityConfig(GoogleConfig):
    networks: list[ZonePrivateVisibilityConfigNetwork] = updatable_field(
        min_length=1
    )


class PolicyNetwork(ZonePrivateVisibilityConfigNetwork):
    """
    A VPC network bound to a DNS policy.
    """


class PolicyTargetNameServer(GoogleConfig):
    ipv4_address: str
    forwarding_path: Optional[Literal["default", "private"]] = (
        updatable_field(default=None)
    )

    def primary_key(self) -> str:
        return self.ipv4_address


class PolicyAlternativeNameServerConfig(GoogleConfig):
    """
    Name servers that replace the default resolver of the bound networks.
    """

    target_name_servers: list[PolicyTargetNameServer] = updatable_field(
        min_length=1
    )
