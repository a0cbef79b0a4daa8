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
This module provides the Pub/Sub snapshot resource and finder.
"""

from typing import Optional, Self

from google.api_core.exceptions import NotFound
from google.protobuf import field_mask_pb2
from google.pubsub_v1 import types

from common.api import ClientKind
from common.entities import (
    GoogleFinder,
    GoogleResource,
    output_field,
    updatable_field,
)
from common.utils.naming import get_snapshot_name_from_id
from resources.pubsub.subscription import SubscriptionResource
from resources.pubsub.topic import TopicResource


class SnapshotResource(GoogleResource):
    """
    A Pub/Sub snapshot of a subscription. Only labels can be updated.
    """

    resource_type = "pubsub-snapshot"
    id_field = "resource_name"

    name: str
    subscription: SubscriptionResource
    labels: dict[str, str] = updatable_field(default_factory=dict)

    resource_name: Optional[str] = output_field()
    expire_time: Optional[str] = output_field()
    topic: Optional[TopicResource] = output_field()

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        return cls.model_construct(
            name=get_snapshot_name_from_id(resource_id),
            resource_name=resource_id,
        )

    def snapshot_path(self) -> str:
        return self.resource_name or (
            f"projects/{self.project_id}/snapshots/{self.name}"
        )

    def copy_from(self, model: types.Snapshot) -> None:
        self.name = get_snapshot_name_from_id(model.name)
        self.resource_name = model.name
        self.labels = dict(model.labels)
        self.topic = self.find_by_id(TopicResource, model.topic)
        self.expire_time = (
            model.expire_time.isoformat() if "expire_time" in model else None
        )

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.SUBSCRIBER)

        try:
            snapshot = client.get_snapshot(snapshot=self.snapshot_path())
        except NotFound:
            return False

        self.copy_from(snapshot)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.SUBSCRIBER)
        snapshot = client.create_snapshot(
            request={
                "name": self.snapshot_path(),
                "subscription": self.subscription.reference_id(),
                "labels": self.labels,
            }
        )
        self.copy_from(snapshot)

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_client(ClientKind.SUBSCRIBER)
        client.update_snapshot(
            request={
                "snapshot": types.Snapshot(
                    name=self.snapshot_path(), labels=self.labels
                ),
                "update_mask": field_mask_pb2.FieldMask(paths=["labels"]),
            }
        )

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.SUBSCRIBER)
        client.delete_snapshot(snapshot=self.snapshot_path())


class SnapshotFinder(GoogleFinder):
    """
    Finds snapshots by `name`, or every snapshot of the project.
    """

    resource_type = "pubsub-snapshot"
    resource_class = SnapshotResource
    client_kind = ClientKind.SUBSCRIBER
    filter_names = ("name",)

    def find_all_google(self, client) -> list[types.Snapshot]:
        return list(
            client.list_snapshots(project=f"projects/{self.project_id}")
        )

    def find_google(
        self, client, filters: dict[str, str]
    ) -> list[types.Snapshot]:
        try:
            return [
                client.get_snapshot(
                    snapshot=(
                        f"projects/{self.project_id}/snapshots/"
                        f"{filters['name']}"
                    )
                )
            ]
        except NotFound:
            return []
