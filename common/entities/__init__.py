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
This module defines the declarative resource model shared by every
Google Cloud resource type.
"""

from common.entities.diffable import (
    Diffable,
    updatable_field,
    output_field,
    dump_value,
)
from common.entities.google_resource import GoogleResource, GoogleFinder
from common.entities.registry import (
    resource_types,
    finder_types,
    get_resource_type,
    get_finder_type,
    load_resources,
)
from common.entities.google_config import (
    GoogleConfig,
    google_body,
    google_values,
    to_google_value,
)
