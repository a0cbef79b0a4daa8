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
This module defines GoogleConfig, a sub-configuration that maps onto a
JSON object of a Google discovery API. Field names are converted to
camelCase keys; nested GoogleConfig fields and lists of them are converted
recursively. Subclasses override to_google or from_google where a field
does not follow these rules.
"""

from typing import Any, Self, get_args, get_origin

from common.entities.diffable import Diffable
from common.utils.naming import to_camel_case


def _config_type(annotation: Any) -> type["GoogleConfig"] | None:
    if get_origin(annotation) is None and isinstance(annotation, type):
        return annotation if issubclass(annotation, GoogleConfig) else None

    for arg in get_args(annotation):
        found = _config_type(arg)
        if found is not None:
            return found

    return None


def _accepts_int(annotation: Any) -> bool:
    return annotation is int or int in get_args(annotation)


def to_google_value(value: Any) -> Any:
    if isinstance(value, GoogleConfig):
        return value.to_google()
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_google_value(item) for item in value]
    return value


def google_values(model_class: type[Diffable], data: dict[str, Any]) -> dict:
    """
    Maps the camelCase keys of a discovery API object onto the fields of
    a model class.
    """
    values = {}

    for name, field in model_class.model_fields.items():
        key = to_camel_case(name)
        if key not in data:
            continue

        value = data[key]
        config_type = _config_type(field.annotation)

        if config_type is not None:
            if isinstance(value, list):
                value = [config_type.from_google(item) for item in value]
            else:
                value = config_type.from_google(value)
        elif (
            _accepts_int(field.annotation)
            and isinstance(value, str)
            and value.lstrip("-").isdigit()
        ):
            # int64 values are serialized as strings
            value = int(value)

        values[name] = value

    return values


def google_body(
    model: Diffable, fields: set[str] | None = None
) -> dict[str, Any]:
    """
    Builds a discovery API object from the non-output fields of a model,
    optionally restricted to `fields`. Unset values are omitted.
    """
    body = {}
    outputs = model.output_fields()

    for name in type(model).model_fields:
        if name in outputs or (fields is not None and name not in fields):
            continue

        value = getattr(model, name, None)
        if value is None:
            continue

        body[to_camel_case(name)] = to_google_value(value)

    return body


class GoogleConfig(Diffable):
    """
    A sub-configuration stored as a discovery API JSON object.
    """

    def to_google(self) -> dict[str, Any]:
        return google_body(self)

    @classmethod
    def from_google(cls, data: dict[str, Any] | None) -> Self | None:
        if data is None:
            return None
        return cls.model_construct(**google_values(cls, data))
