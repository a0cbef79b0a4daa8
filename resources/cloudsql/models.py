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
Sub-configurations of a Cloud SQL database instance. Field names follow the
sqladmin v1beta4 JSON representation.
"""

from typing import Literal, Optional

from pydantic import Field

from common.entities import GoogleConfig, output_field


class DiskEncryptionConfiguration(GoogleConfig):
    kms_key_name: str


class DatabaseFlags(GoogleConfig):
    name: str
    value: Optional[str] = None

    def primary_key(self) -> str:
        return self.name


class BackupRetentionSettings(GoogleConfig):
    retained_backups: Optional[int] = Field(default=None, ge=1)
    retention_unit: Literal["COUNT"] = "COUNT"


class BackupConfiguration(GoogleConfig):
    """
    Daily backups and point in time recovery.
    """

    enabled: Optional[bool] = None
    start_time: Optional[str] = Field(
        default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$"
    )
    location: Optional[str] = None
    binary_log_enabled: Optional[bool] = None
    point_in_time_recovery_enabled: Optional[bool] = None
    transaction_log_retention_days: Optional[int] = Field(
        default=None, ge=1, le=35
    )
    backup_retention_settings: Optional[BackupRetentionSettings] = None


class AclEntry(GoogleConfig):
    """
    An authorized network, in CIDR notation.
    """

    value: str
    name: Optional[str] = None
    expiration_time: Optional[str] = None

    def primary_key(self) -> str:
        return self.value


class IpConfiguration(GoogleConfig):
    ipv4_enabled: Optional[bool] = None
    private_network: Optional[str] = None
    allocated_ip_range: Optional[str] = None
    require_ssl: Optional[bool] = None
    ssl_mode: Optional[
        Literal[
            "ALLOW_UNENCRYPTED_AND_ENCRYPTED",
            "ENCRYPTED_ONLY",
            "TRUSTED_CLIENT_CERTIFICATE_REQUIRED",
        ]
    ] = None
    authorized_networks: list[AclEntry] = Field(default_factory=list)


class MaintenanceWindow(GoogleConfig):
    day: Optional[int] = Field(default=None, ge=1, le=7)
    hour: Optional[int] = Field(default=None, ge=0, le=23)
    update_track: Optional[Literal["canary", "stable", "week5"]] = None


class LocationPreference(GoogleConfig):
    zone: Optional[str] = None
    secondary_zone: Optional[str] = None


class InsightsConfig(GoogleConfig):
    query_insights_enabled: Optional[bool] = None
    query_plans_per_minute: Optional[int] = Field(default=None, ge=0, le=20)
    query_string_length: Optional[int] = Field(default=None, ge=256, le=4500)
    record_application_tags: Optional[bool] = None
    record_client_address: Optional[bool] = None


class DbInstanceSettings(GoogleConfig):
    """
    The user settings of a database instance.
    """

    tier: str
    edition: Optional[Literal["ENTERPRISE", "ENTERPRISE_PLUS"]] = None
    availability_type: Optional[Literal["ZONAL", "REGIONAL"]] = None
    activation_policy: Optional[Literal["ALWAYS", "NEVER", "ON_DEMAND"]] = (
        None
    )
    data_disk_size_gb: Optional[int] = Field(default=None, ge=10)
    data_disk_type: Optional[Literal["PD_SSD", "PD_HDD"]] = None
    pricing_plan: Optional[Literal["PER_USE", "PACKAGE"]] = None
    deletion_protection_enabled: Optional[bool] = None
    storage_auto_resize: Optional[bool] = None
    user_labels: Optional[dict[str, str]] = None
    database_flags: list[DatabaseFlags] = Field(default_factory=list)
    backup_configuration: Optional[BackupConfiguration] = None
    ip_configuration: Optional[IpConfiguration] = None
    maintenance_window: Optional[MaintenanceWindow] = None
    location_preference: Optional[LocationPreference] = None
    insights_config: Optional[InsightsConfig] = None

    settings_version: Optional[int] = output_field()


class IpMapping(GoogleConfig):
    type: Optional[str] = None
    ip_address: Optional[str] = None
    time_to_retire: Optional[str] = None
