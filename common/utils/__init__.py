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
This module provides logging setup, command-line helpers, resource name
helpers and bounded polling.
"""

from common.utils.utils import (
    get_logger,
    parse_common_args,
    str2bool,
    key_value,
)
from common.utils.waiter import Waiter
from common.utils.paging import list_aggregated_items, list_items
