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
This module provides the Cloud DNS resource record set resource and
finder. Record sets are changed through DNS change requests.
"""

from typing import Optional, Self

from common.api import ClientKind
from common.entities import GoogleFinder, GoogleResource, updatable_field
from common.exceptions import ProviderException
from common.utils import list_items
from resources.dns.managed_zone import ManagedZoneResource, wait_for_dns


class ResourceRecordSetResource(GoogleResource):
    """
    A resource record set of a managed zone.
    """

    resource_type = "dns-record-set"

    managed_zone: ManagedZoneResource
    name: str = updatable_field()
    type: str = updatable_field()
    ttl: Optional[int] = updatable_field(default=None, ge=0)
    rrdatas: list[str] = updatable_field(default_factory=list)
    signature_rrdatas: list[str] = updatable_field(default_factory=list)

    def copy_from(self, model: dict) -> None:
        if model.get("managedZone"):
            self.managed_zone = self.find_by_id(
                ManagedZoneResource, model["managedZone"]
            )
        self.name = model["name"]
        self.type = model["type"]
        self.ttl = model.get("ttl")
        self.rrdatas = model.get("rrdatas", [])
        self.signature_rrdatas = model.get("signatureRrdatas", [])

    def to_record_set(self) -> dict:
        record_set = {
            "name": self.name,
            "type": self.type,
            "rrdatas": self.rrdatas,
            "signatureRrdatas": self.signature_rrdatas,
        }
        if self.ttl is not None:
            record_set["ttl"] = self.ttl
        return record_set

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.DNS)
        record_sets = list(
            list_items(
                client.resourceRecordSets().list,
                items_key="rrsets",
                project=self.project_id,
                managedZone=self.managed_zone.name,
                name=self.name,
                type=self.type,
            )
        )

        if not record_sets:
            return False

        if len(record_sets) > 1:
            raise ProviderException(
                f"Multiple records found! [{self.managed_zone.name}] "
                f"[{self.name}] [{self.type}]"
            )

        self.copy_from(record_sets[0])
        return True

    def do_create(self) -> None:
        self.apply_change({"additions": [self.to_record_set()]})
        self.refresh()

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        self.apply_change(
            {
                "deletions": [current.to_record_set()],
                "additions": [self.to_record_set()],
            }
        )
        self.refresh()

    def do_delete(self) -> None:
        self.apply_change({"deletions": [self.to_record_set()]})

    def apply_change(self, change: dict) -> dict:
        """
        Submits a change to the managed zone and waits until it is no
        longer pending.
        """
        client = self.create_client(ClientKind.DNS)
        response = (
            client.changes()
            .create(
                project=self.project_id,
                managedZone=self.managed_zone.name,
                body=change,
            )
            .execute()
        )
        return wait_for_dns(
            client, f"{self} to be updated", self._get_change, response
        )

    def _get_change(self, client, change_id: str) -> dict:
        return (
            client.changes()
            .get(
                project=self.project_id,
                managedZone=self.managed_zone.name,
                changeId=change_id,
            )
            .execute()
        )


class ResourceRecordSetFinder(GoogleFinder):
    """
    Finds the record sets of the zone given by `managed_zone`, optionally
    narrowed by `name` and `type`.
    """

    resource_type = "dns-record-set"
    resource_class = ResourceRecordSetResource
    client_kind = ClientKind.DNS
    filter_names = ("managed_zone", "name", "type")

    def find_all_google(self, client) -> list[dict]:
        raise ProviderException(
            "Finding record sets without a 'managed_zone' filter is not "
            "supported."
        )

    def find_google(self, client, filters: dict[str, str]) -> list[dict]:
        if "managed_zone" not in filters:
            return self.find_all_google(client)

        zone = filters["managed_zone"]
        kwargs = {"project": self.project_id, "managedZone": zone}
        for name in ("name", "type"):
            if name in filters:
                kwargs[name] = filters[name]

        return [
            {**record_set, "managedZone": zone}
            for record_set in list_items(
                client.resourceRecordSets().list, items_key="rrsets", **kwargs
            )
        ]
