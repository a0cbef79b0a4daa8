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
This module provides the Pub/Sub subscription resource and finder.
"""

from typing import Optional, Self

from google.api_core.exceptions import NotFound
from google.protobuf import field_mask_pb2
from google.pubsub_v1 import types
from pydantic import Field

from common.api import ClientKind
from common.entities import (
    Diffable,
    GoogleFinder,
    GoogleResource,
    output_field,
    updatable_field,
)
from common.utils.naming import get_subscription_name_from_id
from resources.pubsub.models import (
    Duration,
    ExpirationPolicy,
    PushConfig,
    RetryPolicy,
)
from resources.pubsub.topic import TopicResource

DELETED_TOPIC = "_deleted-topic_"

UPDATE_PATHS = {
    "ack_deadline_seconds": "ack_deadline_seconds",
    "dead_letter_policy": "dead_letter_policy",
    "expiration_policy": "expiration_policy",
    "filter": "filter",
    "labels": "labels",
    "message_retention": "message_retention_duration",
    "push_config": "push_config",
    "retain_acked_messages": "retain_acked_messages",
    "retry_policy": "retry_policy",
}


class DeadLetterPolicy(Diffable):
    """
    Forwards undeliverable messages to another topic after
    `max_delivery_attempts`.
    """

    dead_letter_topic: TopicResource
    max_delivery_attempts: int = Field(ge=5, le=100)

    def to_dead_letter_policy(self) -> types.DeadLetterPolicy:
        return types.DeadLetterPolicy(
            dead_letter_topic=self.dead_letter_topic.reference_id(),
            max_delivery_attempts=self.max_delivery_attempts,
        )


class SubscriptionResource(GoogleResource):
    """
    A Pub/Sub subscription.
    """

    resource_type = "pubsub-subscription"
    id_field = "reference_name"

    name: str
    topic: TopicResource
    ack_deadline_seconds: Optional[int] = updatable_field(
        default=None, ge=10, le=600
    )
    dead_letter_policy: Optional[DeadLetterPolicy] = updatable_field(
        default=None
    )
    detached: bool = updatable_field(default=False)
    enable_message_ordering: Optional[bool] = None
    expiration_policy: Optional[ExpirationPolicy] = updatable_field(
        default=None
    )
    filter: Optional[str] = updatable_field(default=None)
    labels: dict[str, str] = updatable_field(default_factory=dict)
    message_retention: Optional[Duration] = updatable_field(default=None)
    push_config: Optional[PushConfig] = updatable_field(default=None)
    retain_acked_messages: Optional[bool] = updatable_field(default=None)
    retry_policy: Optional[RetryPolicy] = updatable_field(default=None)

    reference_name: Optional[str] = output_field()

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        return cls.model_construct(
            name=get_subscription_name_from_id(resource_id),
            reference_name=resource_id,
        )

    def subscription_path(self) -> str:
        return self.reference_name or (
            f"projects/{self.project_id}/subscriptions/{self.name}"
        )

    def copy_from(self, model: types.Subscription) -> None:
        self.name = get_subscription_name_from_id(model.name)
        self.reference_name = model.name
        # a detached subscription no longer reports its topic
        if model.topic != DELETED_TOPIC:
            self.topic = self.find_by_id(TopicResource, model.topic)
        self.ack_deadline_seconds = model.ack_deadline_seconds
        self.detached = model.detached
        self.enable_message_ordering = model.enable_message_ordering
        self.filter = model.filter
        self.labels = dict(model.labels)
        self.retain_acked_messages = model.retain_acked_messages
        self.dead_letter_policy = (
            DeadLetterPolicy.model_construct(
                dead_letter_topic=self.find_by_id(
                    TopicResource, model.dead_letter_policy.dead_letter_topic
                ),
                max_delivery_attempts=(
                    model.dead_letter_policy.max_delivery_attempts
                ),
            )
            if "dead_letter_policy" in model
            else None
        )
        self.expiration_policy = (
            ExpirationPolicy.copy_from(model.expiration_policy)
            if "expiration_policy" in model
            else None
        )
        self.message_retention = (
            Duration.copy_from(model.message_retention_duration)
            if "message_retention_duration" in model
            else None
        )
        self.push_config = (
            PushConfig.copy_from(model.push_config)
            if "push_config" in model
            else None
        )
        self.retry_policy = (
            RetryPolicy.copy_from(model.retry_policy)
            if "retry_policy" in model
            else None
        )

    def to_subscription(self) -> types.Subscription:
        subscription = types.Subscription(
            name=self.subscription_path(),
            topic=self.topic.reference_id(),
            labels=self.labels,
        )

        if self.ack_deadline_seconds is not None:
            subscription.ack_deadline_seconds = self.ack_deadline_seconds
        if self.enable_message_ordering is not None:
            subscription.enable_message_ordering = self.enable_message_ordering
        if self.filter is not None:
            subscription.filter = self.filter
        if self.retain_acked_messages is not None:
            subscription.retain_acked_messages = self.retain_acked_messages
        if self.dead_letter_policy is not None:
            subscription.dead_letter_policy = (
                self.dead_letter_policy.to_dead_letter_policy()
            )
        if self.expiration_policy is not None:
            subscription.expiration_policy = (
                self.expiration_policy.to_expiration_policy()
            )
        if self.message_retention is not None:
            subscription.message_retention_duration = (
                self.message_retention.to_duration()
            )
        if self.push_config is not None:
            subscription.push_config = self.push_config.to_push_config()
        if self.retry_policy is not None:
            subscription.retry_policy = self.retry_policy.to_retry_policy()

        return subscription

    def do_refresh(self) -> bool:
        client = self.create_client(ClientKind.SUBSCRIBER)

        try:
            subscription = client.get_subscription(
                subscription=self.subscription_path()
            )
        except NotFound:
            return False

        self.copy_from(subscription)
        return True

    def do_create(self) -> None:
        client = self.create_client(ClientKind.SUBSCRIBER)
        detached = self.detached
        self.copy_from(
            client.create_subscription(request=self.to_subscription())
        )

        if detached:
            self._detach()
            self.detached = True

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        changed_fields = set(changed_fields)

        if "detached" in changed_fields and self.detached:
            self._detach()
        changed_fields.discard("detached")

        paths = sorted(
            UPDATE_PATHS[name]
            for name in changed_fields
            if name in UPDATE_PATHS
        )
        if not paths:
            return

        client = self.create_client(ClientKind.SUBSCRIBER)
        client.update_subscription(
            request={
                "subscription": self.to_subscription(),
                "update_mask": field_mask_pb2.FieldMask(paths=paths),
            }
        )

    def do_delete(self) -> None:
        client = self.create_client(ClientKind.SUBSCRIBER)
        client.delete_subscription(subscription=self.subscription_path())

    def _detach(self) -> None:
        self._logger.info("Detaching %s from its topic", self)
        publisher = self.create_client(ClientKind.PUBLISHER)
        publisher.detach_subscription(
            request={"subscription": self.subscription_path()}
        )


class SubscriptionFinder(GoogleFinder):
    """
    Finds subscriptions by `name`, or every subscription of the project.
    """

    resource_type = "pubsub-subscription"
    resource_class = SubscriptionResource
    client_kind = ClientKind.SUBSCRIBER
    filter_names = ("name",)

    def find_all_google(self, client) -> list[types.Subscription]:
        return list(
            client.list_subscriptions(project=f"projects/{self.project_id}")
        )

    def find_google(
        self, client, filters: dict[str, str]
    ) -> list[types.Subscription]:
        try:
            return [
                client.get_subscription(
                    subscription=(
                        f"projects/{self.project_id}/subscriptions/"
                        f"{filters['name']}"
                    )
                )
            ]
        except NotFound:
            return []
