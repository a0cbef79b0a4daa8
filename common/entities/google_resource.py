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
This module defines the base classes shared by every Google Cloud resource
and finder.

Classes:
- GoogleResource: A Diffable with a create, refresh, update, delete
  lifecycle backed by Google Cloud clients.
- GoogleFinder: Looks up existing Google Cloud resources and maps them to
  GoogleResource objects.
"""

import logging
from typing import Any, ClassVar, Iterable, Self

from pydantic import PrivateAttr

from common.api import ClientKind, ProviderContext
from common.entities.diffable import Diffable
from common.entities import registry
from common.exceptions import ProviderException, google_api_exception_shield
from common.utils import get_logger


class GoogleResource(Diffable):
    """
    Base class for Google Cloud resources.

    Subclasses declare `resource_type` to register themselves and
    `id_field`, the field holding the Google Cloud identifier. They
    implement do_refresh, do_create, do_update, do_delete and copy_from.
    """

    resource_type: ClassVar[str] = ""
    id_field: ClassVar[str] = "name"

    _context: ProviderContext | None = PrivateAttr(default=None)
    _key: str | None = PrivateAttr(default=None)
    _clients: dict = PrivateAttr(default_factory=dict)
    _logger: logging.Logger = PrivateAttr(default_factory=get_logger)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        if "resource_type" in cls.__dict__:
            registry.register_resource(cls)

    def bind(self, context: ProviderContext, key: str | None = None) -> Self:
        """
        Attaches the runtime context and the configuration key.
        """
        self._context = context
        self._key = key
        return self

    @property
    def key(self) -> str | None:
        return self._key

    @property
    def context(self) -> ProviderContext:
        if self._context is None:
            raise ProviderException(f"{self} is not bound to a context.")
        return self._context

    @property
    def project_id(self) -> str:
        return self.context.project_id

    def create_client(self, kind: ClientKind):
        """
        Returns a client of the given kind, created once per resource.
        """
        if kind not in self._clients:
            self._clients[kind] = self.context.client_factory.create(kind)
        return self._clients[kind]

    @classmethod
    def from_id(cls, resource_id: str) -> Self:
        """
        Builds an unvalidated stub holding the identity of a resource.
        """
        return cls.model_construct(**{cls.id_field: resource_id})

    def is_stub(self) -> bool:
        """
        True for identity-only objects built by from_id, which lack the
        required configuration fields.
        """
        return any(
            name not in self.__dict__
            for name, field in type(self).model_fields.items()
            if field.is_required()
        )

    def find_by_id(
        self, resource_class: type["GoogleResource"], resource_id: str | None
    ) -> "GoogleResource | None":
        """
        Returns a stub of another resource bound to the same context.
        """
        if not resource_id:
            return None
        return resource_class.from_id(resource_id).bind(self._context)

    def reference_id(self) -> str:
        """
        The Google Cloud identifier when known, otherwise 'type.key'.
        """
        return getattr(self, self.id_field, None) or (
            f"{self.resource_type}.{self._key}"
        )

    def diff_identity(self) -> str | None:
        return self.reference_id()

    def __str__(self) -> str:
        return f"{self.resource_type} {self._key or self.reference_id()}"

    @google_api_exception_shield
    def refresh(self) -> bool:
        """
        Reads the resource from Google Cloud. Returns False when it no
        longer exists.
        """
        self._logger.info("Refreshing %s", self)
        found = self.do_refresh()

        if not found:
            self._logger.info("%s was not found", self)

        return found

    @google_api_exception_shield
    def create(self) -> None:
        self._logger.info("Creating %s", self)
        self.do_create()
        self._logger.info("Created %s", self)

    @google_api_exception_shield
    def update(self, current: Self, changed_fields: set[str]) -> None:
        self._logger.info(
            "Updating %s: %s", self, ", ".join(sorted(changed_fields))
        )
        self.do_update(current, changed_fields)
        self._logger.info("Updated %s", self)

    @google_api_exception_shield
    def delete(self) -> None:
        self._logger.info("Deleting %s", self)
        self.do_delete()
        self._logger.info("Deleted %s", self)

    def do_refresh(self) -> bool:
        raise NotImplementedError

    def do_create(self) -> None:
        raise NotImplementedError

    def do_update(self, current: Self, changed_fields: set[str]) -> None:
        raise NotImplementedError

    def do_delete(self) -> None:
        raise NotImplementedError

    def copy_from(self, model: Any) -> None:
        raise NotImplementedError

    def copy_values(
        self, values: dict[str, Any], keep: Iterable[str] = ()
    ) -> None:
        """
        Replaces the field values with those read from Google Cloud.
        Optional fields missing from `values` are reset to their default,
        except the write-only ones named in `keep`.
        """
        keep = set(keep)

        for name, field in type(self).model_fields.items():
            if name in values:
                setattr(self, name, values[name])
            elif name not in keep and not field.is_required():
                setattr(
                    self, name, field.get_default(call_default_factory=True)
                )
                self.__pydantic_fields_set__.discard(name)


class GoogleFinder:
    """
    Base class for finders.

    Subclasses declare `resource_type`, `resource_class`, `client_kind`
    and `filter_names` and implement find_all_google and find_google.
    """

    resource_type: ClassVar[str] = ""
    resource_class: ClassVar[type[GoogleResource]]
    client_kind: ClassVar[ClientKind]
    filter_names: ClassVar[tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "resource_type" in cls.__dict__:
            registry.register_finder(cls)

    def __init__(self, context: ProviderContext) -> None:
        self._context = context
        self._client = None
        self._logger = get_logger()

    @property
    def project_id(self) -> str:
        return self._context.project_id

    def create_client(self):
        if self._client is None:
            self._client = self._context.client_factory.create(
                self.client_kind
            )
        return self._client

    @google_api_exception_shield
    def find_all(self) -> list[GoogleResource]:
        """
        Returns every resource of this type in the project.
        """
        self._logger.info("Finding all %s resources", self.resource_type)
        return self._to_resources(self.find_all_google(self.create_client()))

    @google_api_exception_shield
    def find(self, filters: dict[str, Any]) -> list[GoogleResource]:
        """
        Returns the resources matching the given filters.
        """
        unknown = set(filters) - set(self.filter_names)
        if unknown:
            raise ProviderException(
                f"Unsupported filter(s) for {self.resource_type}: "
                f"{', '.join(sorted(unknown))}. "
                f"Supported: {', '.join(self.filter_names)}"
            )

        if not filters:
            return self.find_all()

        filters = {name: str(value) for name, value in filters.items()}
        self._logger.info(
            "Finding %s resources with filters %s", self.resource_type, filters
        )
        return self._to_resources(
            self.find_google(self.create_client(), filters)
        )

    def find_all_google(self, client) -> Iterable[Any]:
        raise NotImplementedError

    def find_google(self, client, filters: dict[str, str]) -> Iterable[Any]:
        raise NotImplementedError

    def _to_resources(self, models: Iterable[Any]) -> list[GoogleResource]:
        resources = []

        for model in models:
            resource = self.resource_class.model_construct().bind(
                self._context
            )
            resource.copy_from(model)
            resources.append(resource)

        return resources
