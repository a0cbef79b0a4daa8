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
IAM service account and custom role tests
"""

import pytest
from pydantic import ValidationError

from common.api import ClientKind
from common.exceptions import ProviderException
from resources.iam import (
    CustomRoleFinder,
    CustomRoleResource,
    ServiceAccountFinder,
    ServiceAccountResource,
)
from tests.mocks.api.iam_api_mock import IamApiMock
from tests.mocks.api.resource_manager_api_mock import ResourceManagerApiMock

EMAIL = "deployer@test-project.iam.gserviceaccount.com"
ACCOUNT_ID = f"projects/test-project/serviceAccounts/{EMAIL}"
MEMBER = f"serviceAccount:{EMAIL}"
ROLE_NAME = "projects/test-project/roles/deployer"
PERMISSIONS = ["storage.buckets.get", "storage.buckets.list"]


@pytest.fixture
def iam() -> IamApiMock:
    return IamApiMock()


@pytest.fixture
def resource_manager() -> ResourceManagerApiMock:
    return ResourceManagerApiMock(
        {
            "roles/owner": ["user:admin@example.com"],
            "roles/viewer": ["user:dev@example.com"],
        }
    )


@pytest.fixture
def context(make_context, iam, resource_manager):
    return make_context(
        {ClientKind.IAM: iam, ClientKind.PROJECTS: resource_manager}
    )


def service_account(context, **values) -> ServiceAccountResource:
    values = {
        "name": "deployer",
        "display_name": "Deployer",
        "roles": ["roles/storage.admin", "roles/viewer"],
        **values,
    }
    return ServiceAccountResource(**values).bind(context, "deployer")


def refreshed(context) -> ServiceAccountResource:
    current = ServiceAccountResource.from_id(ACCOUNT_ID).bind(context)
    assert current.refresh()
    return current


class TestServiceAccount:
    """
    Service account tests
    """

    def test_create(self, context, iam, resource_manager):
        account = service_account(context, description="Deploys services")

        account.create()

        assert account.id == ACCOUNT_ID
        assert account.email == EMAIL
        assert iam.accounts[ACCOUNT_ID]["description"] == "Deploys services"
        assert resource_manager.roles_of(MEMBER) == [
            "roles/storage.admin",
            "roles/viewer",
        ]
        assert resource_manager.roles_of("user:dev@example.com") == [
            "roles/viewer"
        ]
        assert iam.requests == []

    def test_no_changes_after_create(self, context):
        service_account(context).create()
        desired = service_account(
            context, roles=["roles/viewer", "roles/storage.admin"]
        )

        assert desired.changed_fields(refreshed(context)) == set()

    def test_create_disabled(self, context, iam):
        service_account(context, enable_account=False).create()

        assert iam.requests == [("disable", ACCOUNT_ID)]
        assert not refreshed(context).enable_account

    def test_update(self, context, iam, resource_manager):
        service_account(context).create()
        current = refreshed(context)
        desired = service_account(
            context, display_name="Deploy bot", roles=["roles/viewer"]
        )

        changed_fields = desired.changed_fields(current)
        desired.update(current, changed_fields)

        assert changed_fields == {"display_name", "roles"}
        assert iam.requests == [("patch", "displayName")]
        assert iam.accounts[ACCOUNT_ID]["displayName"] == "Deploy bot"
        assert resource_manager.roles_of(MEMBER) == ["roles/viewer"]
        assert len(resource_manager.set_requests) == 2
        assert desired.id == ACCOUNT_ID

    def test_enable(self, context, iam):
        service_account(context, enable_account=False).create()
        current = refreshed(context)
        desired = service_account(context, enable_account=True)

        desired.update(current, desired.changed_fields(current))

        assert iam.requests[-1] == ("enable", ACCOUNT_ID)
        assert refreshed(context).enable_account

    def test_delete(self, context, iam, resource_manager):
        account = service_account(context)
        account.create()

        account.delete()

        assert ACCOUNT_ID not in iam.accounts
        assert iam.requests[-1] == ("delete", ACCOUNT_ID)
        assert resource_manager.roles_of(MEMBER) == []
        assert resource_manager.roles_of("user:admin@example.com") == [
            "roles/owner"
        ]

    def test_refresh_missing(self, context):
        account = ServiceAccountResource.from_id(ACCOUNT_ID).bind(context)

        assert not account.refresh()

    def test_from_id(self):
        account = ServiceAccountResource.from_id(ACCOUNT_ID)

        assert account.name == "deployer"
        assert account.email == EMAIL
        assert account.reference_id() == ACCOUNT_ID

    @pytest.mark.parametrize("name", ["Deployer", "abc", "1deployer"])
    def test_invalid_name(self, context, name):
        with pytest.raises(ValidationError):
            service_account(context, name=name)


class TestServiceAccountFinder:
    """
    Service account finder tests
    """

    @pytest.fixture
    def accounts(self, iam):
        iam.add_account("builder", "Builder")
        iam.add_account("deployer", "Deployer")

    def test_find_all(self, context, iam, accounts):
        accounts = ServiceAccountFinder(context).find_all()

        assert [a.name for a in accounts] == ["builder", "deployer"]
        assert accounts[0].roles == []
        assert iam.requests == [("list", 20)]

    def test_find_by_display_name(self, context, accounts):
        accounts = ServiceAccountFinder(context).find(
            {"display_name": "Deployer"}
        )

        assert [a.id for a in accounts] == [ACCOUNT_ID]

    def test_find_by_name(self, context, accounts):
        finder = ServiceAccountFinder(context)

        assert [a.email for a in finder.find({"name": "builder"})] == [
            "builder@test-project.iam.gserviceaccount.com"
        ]
        assert finder.find({"name": "missing"}) == []


class TestCustomRole:
    """
    Custom project role tests
    """

    def role(self, context, **values) -> CustomRoleResource:
        values = {
            "role_id": "deployer",
            "title": "Deployer",
            "included_permissions": PERMISSIONS,
            **values,
        }
        return CustomRoleResource(**values).bind(context, "deployer")

    def current(self, context) -> CustomRoleResource:
        current = CustomRoleResource.from_id(ROLE_NAME).bind(context)
        assert current.refresh()
        return current

    def test_create(self, context, iam):
        role = self.role(context, stage="GA")

        role.create()

        assert iam.roles_data[ROLE_NAME]["includedPermissions"] == PERMISSIONS
        assert "roleId" not in iam.roles_data[ROLE_NAME]
        assert role.name == ROLE_NAME
        assert role.etag == "BwY1"
        current = self.current(context)
        assert current.role_id == "deployer"
        assert self.role(context, stage="GA").changed_fields(current) == set()

    def test_update(self, context, iam):
        self.role(context, description="Deploys").create()
        current = self.current(context)
        desired = self.role(
            context,
            title="Release deployer",
            description=None,
            included_permissions=list(reversed(PERMISSIONS)),
        )

        changed_fields = desired.changed_fields(current)
        desired.update(current, changed_fields)

        assert changed_fields == {"title", "description"}
        assert iam.requests == [("patch role", "description,title")]
        assert "description" not in iam.roles_data[ROLE_NAME]
        assert desired.title == "Release deployer"

    def test_delete_and_restore(self, context, iam):
        role = self.role(context)
        role.create()

        role.delete()

        assert iam.roles_data[ROLE_NAME]["deleted"] is True
        assert not role.refresh()
        assert CustomRoleFinder(context).find({"name": "deployer"}) == []

        restored = self.role(context, title="Restored")
        restored.create()

        assert iam.requests[-2:] == [
            ("undelete role", ROLE_NAME),
            ("patch role", "includedPermissions,title"),
        ]
        assert restored.title == "Restored"
        assert self.current(context).title == "Restored"

    @pytest.mark.parametrize("role_id", ["ab", "has space", "x" * 65])
    def test_invalid_role_id(self, context, role_id):
        with pytest.raises(ValidationError):
            self.role(context, role_id=role_id)

    def test_finder(self, context):
        self.role(context).create()
        self.role(context, role_id="builder").create()
        finder = CustomRoleFinder(context)

        assert [r.role_id for r in finder.find_all()] == [
            "builder",
            "deployer",
        ]
        assert [r.name for r in finder.find({"name": "deployer"})] == [
            ROLE_NAME
        ]
        assert [r.title for r in finder.find({"name": ROLE_NAME})] == [
            "Deployer"
        ]
        assert finder.find({"name": "missing"}) == []

    def test_finder_rejects_predefined_roles(self, context):
        with pytest.raises(ProviderException, match="predefined"):
            CustomRoleFinder(context).find({"name": "roles/viewer"})
