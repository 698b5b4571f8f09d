"""StoragePolicy - inline vs spilled decisions"""

import pytest

from result_store.domain.entities.result_record import EXECUTE_RESPONSE, MIME_XML, ResultRecord
from result_store.domain.exceptions import StoreError
from result_store.domain.services.storage_policy import StorageLocation, StoragePolicy
from result_store.domain.value_objects.record_category import RecordCategory


class TestStoragePolicy:
    def test_requests_are_always_inline(self):
        assert StoragePolicy(save_results_to_db=False).location_for("REQ_1") is StorageLocation.INLINE
        assert StoragePolicy(save_results_to_db=True).location_for("REQ_1") is StorageLocation.INLINE

    def test_plain_responses_are_inline(self):
        assert StoragePolicy(save_results_to_db=False).location_for("job42") is StorageLocation.INLINE

    def test_outputs_spill_unless_saved_to_db(self):
        assert StoragePolicy(save_results_to_db=False).location_for("job43_output") is StorageLocation.SPILLED
        assert StoragePolicy(save_results_to_db=True).location_for("job43_output") is StorageLocation.INLINE

    def test_may_be_spilled_mirrors_write_rule(self):
        policy = StoragePolicy(save_results_to_db=False)
        assert policy.may_be_spilled("job43_output")
        assert not policy.may_be_spilled("job42")


class TestResultRecord:
    def test_create_stamps_request_date(self):
        record = ResultRecord.create("job43_output", EXECUTE_RESPONSE, MIME_XML, b"<x/>")

        assert record.request_date.tzinfo is not None
        assert record.category is RecordCategory.OUTPUT

    def test_create_rejects_blank_id(self):
        with pytest.raises(StoreError):
            ResultRecord.create("  ", EXECUTE_RESPONSE, MIME_XML, b"")
