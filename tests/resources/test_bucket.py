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
Cloud Storage bucket tests
"""

import pytest
from pydantic import ValidationError

from common.api import ClientKind
from common.exceptions import ProviderException
from resources.storage import BucketFinder, BucketResource
from services.provisioner.planner import ChangeType, Planner
from tests.mocks.api.storage_api_mock import StorageApiMock

LIFECYCLE = {
    "rule": [
        {
            "action": {"type": "SetStorageClass", "storage_class": "COLDLINE"},
            "condition": {"age": 30, "matches_storage_class": ["STANDARD"]},
        },
        {"action": {"type": "Delete"}, "condition": {"is_live": False}},
    ]
}


class TestBucket:
    """
    Bucket resource tests
    """

    @pytest.fixture
    def storage(self) -> StorageApiMock:
        return StorageApiMock()

    @pytest.fixture
    def context(self, make_context, storage):
        return make_context({ClientKind.STORAGE: storage})

    def bucket(self, context, **values) -> BucketResource:
        return BucketResource(**values).bind(context, values["name"])

    def test_create(self, context, storage):
        bucket = self.bucket(
            context,
            name="data-bucket",
            location="us-east1",
            labels={"team": "data"},
            versioning={"enabled": True},
        )

        bucket.create()

        created = storage.buckets_data["data-bucket"]
        assert created["location"] == "US-EAST1"
        assert created["labels"] == {"team": "data"}
        assert created["versioning"] == {"enabled": True}
        assert bucket.id == "data-bucket"
        assert bucket.self_link.endswith("/b/data-bucket")
        assert bucket.time_created == "2025-01-01T00:00:00.000Z"

    def test_refresh_missing_bucket(self, context):
        assert not BucketResource.from_id("missing").bind(context).refresh()

    def test_no_changes_after_create(self, context):
        self.bucket(
            context, name="data-bucket", lifecycle=LIFECYCLE
        ).create()
        desired = self.bucket(
            context, name="data-bucket", lifecycle=LIFECYCLE
        )
        current = BucketResource.from_id("data-bucket").bind(context)

        assert current.refresh()
        assert desired.changed_fields(current) == set()
        assert current.lifecycle.rule[0].action.storage_class == "COLDLINE"
        assert current.lifecycle.rule[0].condition.age == 30

    def test_update_sends_changed_and_cleared_fields(self, context, storage):
        self.bucket(
            context, name="data-bucket", versioning={"enabled": True}
        ).create()
        desired = self.bucket(
            context,
            name="data-bucket",
            storage_class="NEARLINE",
            versioning=None,
        )
        current = BucketResource.from_id("data-bucket").bind(context)
        current.refresh()

        changed_fields = desired.changed_fields(current)
        desired.update(current, changed_fields)

        assert changed_fields == {"storage_class", "versioning"}
        assert storage.patches == [
            {"storageClass": "NEARLINE", "versioning": None}
        ]
        assert "versioning" not in storage.buckets_data["data-bucket"]
        assert desired.storage_class == "NEARLINE"

    def test_removed_labels_are_detected(self, context, storage):
        recorded = self.bucket(
            context, name="data-bucket", labels={"team": "data"}
        )
        recorded.create()
        del storage.buckets_data["data-bucket"]["labels"]
        desired = self.bucket(
            context, name="data-bucket", labels={"team": "data"}
        )

        change = Planner().plan_resource(
            ("bucket", "data-bucket"), desired, recorded
        )

        assert change.change_type == ChangeType.UPDATE
        assert change.changed_fields == {"labels"}
        assert recorded.labels is None
        assert "labels" not in recorded.configured_fields()

    def test_delete(self, context, storage):
        bucket = self.bucket(context, name="data-bucket")
        bucket.create()

        bucket.delete()

        assert not storage.buckets_data
        assert not bucket.refresh()

    def test_delete_missing_bucket(self, context):
        with pytest.raises(ProviderException, match="404"):
            self.bucket(context, name="missing").delete()

    @pytest.mark.parametrize(
        "labels",
        [{"Team": "data"}, {"team": "x" * 64}, {"team": "data science"}],
    )
    def test_invalid_labels(self, labels):
        with pytest.raises(ValidationError):
            BucketResource(name="data-bucket", labels=labels)

    def test_invalid_lifecycle_condition(self):
        with pytest.raises(ValidationError):
            BucketResource(
                name="data-bucket",
                lifecycle={
                    "rule": [
                        {
                            "action": {"type": "Delete"},
                            "condition": {"created_before": "yesterday"},
                        }
                    ]
                },
            )


class TestBucketFinder:
    """
    Bucket finder tests
    """

    @pytest.fixture
    def context(self, make_context):
        storage = StorageApiMock()
        for name in ["a-bucket", "b-bucket", "c-bucket"]:
            storage.buckets().insert(
                project="test-project", body={"name": name}
            )
        return make_context({ClientKind.STORAGE: storage})

    def test_find_all_pages_through_buckets(self, context):
        buckets = BucketFinder(context).find_all()

        assert [b.name for b in buckets] == ["a-bucket", "b-bucket", "c-bucket"]
        assert buckets[0].location == "US"

    def test_find_by_name(self, context):
        buckets = BucketFinder(context).find({"name": "b-bucket"})

        assert [b.reference_id() for b in buckets] == ["b-bucket"]
        assert buckets[0].to_dict()["self_link"].endswith("/b/b-bucket")

    def test_find_missing(self, context):
        assert BucketFinder(context).find({"name": "missing"}) == []

    def test_unknown_filter(self, context):
        with pytest.raises(ProviderException, match="Unsupported filter"):
            BucketFinder(context).find({"location": "US"})
