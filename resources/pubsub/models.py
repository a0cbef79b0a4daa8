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
Sub-configurations shared by Pub/Sub topics and subscriptions, with their
conversions from and to the Pub/Sub API messages.
"""

from datetime import timedelta
from typing import Optional, Self

from google.pubsub_v1 import types
from pydantic import Field, model_validator

from common.entities import Diffable


class Duration(Diffable):
    """
    A span of time expressed in seconds and nanoseconds.
    """

    seconds: Optional[int] = Field(default=None, ge=0)
    nanos: Optional[int] = Field(default=None, ge=0, le=999999999)

    @model_validator(mode="after")
    def validate_duration(self) -> Self:
        if self.seconds is None and self.nanos is None:
            raise ValueError("At least one of 'seconds' or 'nanos' is required")
        return self

    def primary_key(self) -> str:
        return (
            f"Duration: {self.seconds or 0} seconds, "
            f"{self.nanos or 0} nano seconds"
        )

    @classmethod
    def copy_from(cls, model: timedelta) -> Self:
        return cls.model_construct(
            seconds=model.days * 86400 + model.seconds,
            nanos=model.microseconds * 1000,
        )

    def to_duration(self) -> timedelta:
        return timedelta(
            seconds=self.seconds or 0, microseconds=(self.nanos or 0) // 1000
        )


class MessageStoragePolicy(Diffable):
    allowed_persistence_regions: list[str]

    @classmethod
    def copy_from(cls, model: types.MessageStoragePolicy) -> Self:
        return cls.model_construct(
            allowed_persistence_regions=list(model.allowed_persistence_regions)
        )

    def to_message_storage_policy(self) -> types.MessageStoragePolicy:
        return types.MessageStoragePolicy(
            allowed_persistence_regions=self.allowed_persistence_regions
        )


class ExpirationPolicy(Diffable):
    """
    A subscription expires after `ttl` of inactivity. Without a ttl it
    never expires.
    """

    ttl: Optional[Duration] = None

    @classmethod
    def copy_from(cls, model: types.ExpirationPolicy) -> Self:
        return cls.model_construct(
            ttl=Duration.copy_from(model.ttl) if "ttl" in model else None
        )

    def to_expiration_policy(self) -> types.ExpirationPolicy:
        if self.ttl is None:
            return types.ExpirationPolicy()
        return types.ExpirationPolicy(ttl=self.ttl.to_duration())


class OidcToken(Diffable):
    audience: Optional[str] = None
    service_account_email: str

    @classmethod
    def copy_from(cls, model: types.PushConfig.OidcToken) -> Self:
        return cls.model_construct(
            audience=model.audience,
            service_account_email=model.service_account_email,
        )

    def to_oidc_token(self) -> types.PushConfig.OidcToken:
        return types.PushConfig.OidcToken(
            audience=self.audience or "",
            service_account_email=self.service_account_email,
        )


class PushConfig(Diffable):
    push_endpoint: str
    attributes: dict[str, str] = Field(default_factory=dict)
    oidc_token: Optional[OidcToken] = None

    @classmethod
    def copy_from(cls, model: types.PushConfig) -> Self:
        return cls.model_construct(
            push_endpoint=model.push_endpoint,
            attributes=dict(model.attributes),
            oidc_token=(
                OidcToken.copy_from(model.oidc_token)
                if "oidc_token" in model
                else None
            ),
        )

    def to_push_config(self) -> types.PushConfig:
        push_config = types.PushConfig(
            push_endpoint=self.push_endpoint, attributes=self.attributes
        )

        if self.oidc_token is not None:
            push_config.oidc_token = self.oidc_token.to_oidc_token()

        return push_config


class RetryPolicy(Diffable):
    minimum_backoff: Optional[Duration] = None
    maximum_backoff: Optional[Duration] = None

    @model_validator(mode="after")
    def validate_backoff(self) -> Self:
        if self.minimum_backoff is None and self.maximum_backoff is None:
            raise ValueError(
                "At least one of 'minimum_backoff' or 'maximum_backoff' "
                "is required."
            )
        return self

    @classmethod
    def copy_from(cls, model: types.RetryPolicy) -> Self:
        return cls.model_construct(
            minimum_backoff=(
                Duration.copy_from(model.minimum_backoff)
                if "minimum_backoff" in model
                else None
            ),
            maximum_backoff=(
                Duration.copy_from(model.maximum_backoff)
                if "maximum_backoff" in model
                else None
            ),
        )

    def to_retry_policy(self) -> types.RetryPolicy:
        retry_policy = types.RetryPolicy()

        if self.minimum_backoff is not None:
            retry_policy.minimum_backoff = self.minimum_backoff.to_duration()
        if self.maximum_backoff is not None:
            retry_policy.maximum_backoff = self.maximum_backoff.to_duration()

        return retry_policy
