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
This module provides the Pub/Sub topic resource and finder.
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
from common.utils.naming import get_topic_name_from_id
from resources.kms.crypto_key import CryptoKeyResource
from resources.pubsub.models import Duration, MessageStoragePolicy

UPDATE_PATHS = {
    "labels": "labels",
    "kms_key": "kms_key_name",
    "message_storage_policy": "message_storage_policy",
    "message_retention": "message_retention_duration",
}


class TopicResource(GoogleResource):
    """
    A Pub/Sub topic.
    """

    resource_type = "pubsub-topic"
    id_field = "reference_name"

    name: str
    labels: dict[str, str] = updatable_field(default_factory=dict)
    kms_key: Optional[CryptoKeyResource] = updatable_field(default=None)
    message_storage_policy: Optional[MessageStoragePolicy] = updatable_field(
        default=None
    )
    message_retention: Optional[Duration] = updatable_field(default=None)

    reference_name: Optional[str] = output_field()

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        return cls.model_construct(
            name=get_topic_name_from_id(resource_id),
            reference_name=resource_id,
        )

    def topic_path(self) -> str:
        return self.reference_name or (
            f"projects/{self.project_id}/topics/{self.name}"
        )

    def copy_from(self, model: types.Topic) -> None:
        self.name = get_topic_name_from_id(model.name)
        self.reference_name = model.name
        self.labels = dict(model.labels)
        self.kms_key = self.find_by_id(CryptoKeyResource, model.kms_key_name)
        self.message_storage_policy = (
            MessageStoragePolicy.copy_from(model.message_storage_policy)
            if "message_storage_policy" in model
            else None
        )
        self.message_retention = (
            Duration.copy_from(model.message_retention_duration)
            if "message_retention_duration" in model
            else None
        )

    def to_topic(self) -> types.Topic:
        topic = types.Topic(name=self.topic_path(), labels=self.labels)

        if self.kms_key is not None:
            topic.kms_key_name = self.kms_key.reference_id()
        if self.message_storage_policy is not None:
            topic.message_storage_policy = (
                self.message_storage_policy.to_message_storage_policy()
            )
        if self.message_retention is not None:
            topic.message_retention_duration = (
                self.message_retention.to_duration()
            )

        return topic

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.PUBLISHER)

        try:
            topic = client.get_topic(topic=self.topic_path())
        except NotFound:
            return False

        self.copy_from(topic)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.PUBLISHER)
        self.copy_from(client.create_topic(request=self.to_topic()))

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        client = self.create_client(ClientKind.PUBLISHER)
        update_mask = field_mask_pb2.FieldMask(
            paths=sorted(
                UPDATE_PATHS[name]
                for name in changed_fields
                if name in UPDATE_PATHS
            )
        )
        client.update_topic(
            request={"topic": self.to_topic(), "update_mask": update_mask}
        )

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.PUBLISHER)
        client.delete_topic(topic=self.topic_path())


class TopicFinder(GoogleFinder):
    """
    Finds topics by `name`, or every topic of the project.
    """

    resource_type = "pubsub-topic"
    resource_class = TopicResource
    client_kind = ClientKind.PUBLISHER
    filter_names = ("name",)

    def find_all_google(self, client) -> list[types.Topic]:
        return list(client.list_topics(project=f"projects/{self.project_id}"))

    def find_google(self, client, filters: dict[str, str]) -> list[types.Topic]:
        try:
            return [
                client.get_topic(
                    topic=f"projects/{self.project_id}/topics/{filters['name']}"
                )
            ]
        except NotFound:
            return []
