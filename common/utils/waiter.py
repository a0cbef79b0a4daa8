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
This module provides bounded polling for asynchronous Google Cloud
operations.
"""

import time
from typing import Any, Callable

from common.exceptions import WaitTimeoutException
from common.utils.utils import get_logger


class Waiter:
    """
    Polls a condition until it holds or the waiting budget is spent.

    With `backoff` enabled the n-th wait lasts `check_every * n` seconds,
    otherwise every wait lasts `check_every` seconds. The budget counts
    the time spent sleeping, so a slow condition does not shorten it.
    """

    def __init__(
        self,
        at_most: float,
        check_every: float = 1,
        backoff: bool = False,
    ) -> None:
        self.at_most = at_most
        self.check_every = check_every
        self.backoff = backoff
        self._logger = get_logger()

    def until(
        self, condition: Callable[[], Any], description: str = "operation"
    ) -> Any:
        """
        Calls `condition` until it returns a truthy value and returns
        that value. Raises WaitTimeoutException when the budget is spent.
        """
        waited = 0
        attempt = 1

        while True:
            result = condition()

            if result:
                return result

            delay = (
                self.check_every * attempt
                if self.backoff
                else self.check_every
            )

            if waited + delay > self.at_most:
                raise WaitTimeoutException(
                    f"Timed out after {waited} seconds waiting for "
                    f"{description}."
                )

            self._logger.info(
                "Waiting for %s, checking again in %s seconds.",
                description,
                delay,
            )
            time.sleep(delay)
            waited += delay
            attempt += 1
