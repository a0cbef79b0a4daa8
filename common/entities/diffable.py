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
This module defines the Diffable base model. A Diffable holds declarative
configuration: the fields a user sets are compared against the state
read back from Google Cloud to decide what has to change.

Field flags:
- updatable_field: may change in place.
- output_field: populated from Google Cloud, never configured or compared.
- plain Field: changing it replaces the resource.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UPDATABLE = "updatable"
OUTPUT = "output"


def updatable_field(*args, **kwargs) -> Any:
    """
    Declares a field that can be updated without replacing the resource.
    """
    return Field(*args, json_schema_extra={UPDATABLE: True}, **kwargs)


def output_field(**kwargs) -> Any:
    """
    Declares a read-only field populated from Google Cloud.
    """
    if "default_factory" not in kwargs:
        kwargs.setdefault("default", None)
    return Field(json_schema_extra={OUTPUT: True}, **kwargs)


def _is_empty(value: Any) -> bool:
    return value is None or value == [] or value == {} or value == ""


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return sorted((_plain(item) for item in value), key=repr)
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


def differs(desired: Any, current: Any) -> bool:
    """
    Returns True when a configured value differs from the current one.
    Lists are compared regardless of order.
    """
    if _is_empty(desired) and _is_empty(current):
        return False

    if isinstance(desired, Diffable):
        identity = desired.diff_identity()
        if identity is not None:
            if isinstance(current, Diffable):
                return identity != current.diff_identity()
            return identity != current
        if not isinstance(current, Diffable):
            return True
        return bool(desired.changed_fields(current))

    if isinstance(desired, (list, tuple, set, frozenset)) and any(
        isinstance(item, Diffable) for item in desired
    ):
        return _list_differs(list(desired), list(current or []))

    if isinstance(desired, dict) and isinstance(current, dict):
        if desired.keys() != current.keys():
            return True
        return any(differs(desired[key], current[key]) for key in desired)

    return _plain(desired) != _plain(current)


def _list_differs(desired: list, current: list) -> bool:
    if len(desired) != len(current):
        return True

    remaining = list(current)
    for item in desired:
        match = next(
            (
                candidate
                for candidate in remaining
                if isinstance(candidate, Diffable)
                and candidate.primary_key() == item.primary_key()
                and not differs(item, candidate)
            ),
            None,
        )
        if match is None:
            return True
        remaining.remove(match)

    return False


def dump_value(value: Any) -> Any:
    """
    Converts a field value into its JSON representation.
    """
    if isinstance(value, Diffable):
        identity = value.diff_identity()
        if identity is not None:
            return {"$type": value.resource_type, "$id": identity}
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [dump_value(item) for item in value]
    if isinstance(value, dict):
        return {key: dump_value(item) for key, item in value.items()}
    return value


class Diffable(BaseModel):
    """
    Base model for configuration that can be compared against Google Cloud.
    """

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def field_flag(cls, field_name: str, flag: str) -> bool:
        extra = cls.model_fields[field_name].json_schema_extra
        return isinstance(extra, dict) and bool(extra.get(flag))

    @classmethod
    def output_fields(cls) -> set[str]:
        return {
            name for name in cls.model_fields if cls.field_flag(name, OUTPUT)
        }

    @classmethod
    def updatable_fields(cls) -> set[str]:
        return {
            name
            for name in cls.model_fields
            if cls.field_flag(name, UPDATABLE)
        }

    def primary_key(self) -> str:
        """
        Identifies this object among the items of a list.
        """
        return ""

    def diff_identity(self) -> str | None:
        """
        Identity used when this object is referenced from another one.
        Plain sub-configurations are compared field by field instead.
        """
        return None

    def configured_fields(self) -> set[str]:
        return set(self.model_fields_set) - self.output_fields()

    def changed_fields(self, current: "Diffable") -> set[str]:
        """
        Returns the configured fields whose value differs from `current`.
        """
        return {
            name
            for name in self.configured_fields()
            if differs(getattr(self, name, None), getattr(current, name, None))
        }

    def to_dict(self) -> dict[str, Any]:
        """
        Returns the configured and populated output fields as JSON ready
        values.
        """
        result = {}
        outputs = self.output_fields()

        for name in type(self).model_fields:
            value = getattr(self, name, None)

            if value is None or (
                name not in outputs and name not in self.model_fields_set
            ):
                continue

            result[name] = dump_value(value)

        return result

    def copy_outputs_from(self, other: "Diffable") -> None:
        """
        Copies output fields, including those of nested
        sub-configurations, from an object read back from Google Cloud.
        """
        for name in type(self).model_fields:
            value = getattr(other, name, None)

            if self.field_flag(name, OUTPUT):
                setattr(self, name, value)
                continue

            mine = getattr(self, name, None)
            if (
                isinstance(mine, Diffable)
                and mine.diff_identity() is None
                and isinstance(value, Diffable)
            ):
                mine.copy_outputs_from(value)
