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
This script provisions Google Cloud resources described by a JSON
configuration file.

Functions:
- main: Runs the requested provisioner command.
- cli: Console entry point.
"""

import sys

from common.exceptions import (
    FormatException,
    IncorrectTypeException,
    ProviderException,
)
from common.utils import get_logger
from services.provisioner.config import get_application_config
from services.provisioner.controller import ProvisionController


def main(app_config: dict) -> int:
    """
    Runs the command of the application config. Returns the process exit
    code.
    """
    logger = get_logger()

    try:
        controller = ProvisionController(app_config)
        controller.run()
    except (
        ProviderException,
        IncorrectTypeException,
        FormatException,
    ) as e:
        logger.error("%s failed: %s", app_config["command"], e)
        return 1

    return 0


def cli() -> None:
    sys.exit(main(get_application_config()))


if __name__ == "__main__":
    cli()
