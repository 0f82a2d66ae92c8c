"""
Tests for record validation, work lists and progress bookkeeping.
"""

from collections import deque

from occsync.models.occupation import Occupation, is_valid_occ_code, validate_occupation
from occsync.models.sync import SyncProgress
from occsync.services.occupation_codes import STANDARD_OCCUPATIONS, load_work_items


class TestValidateOccupation:
    """Tests for validate_occupation."""

    def test_valid_record(self):
        record = Occupation(occ_code="15-1252", occ_title="Software Developers", employment=10, risk_score=20)

        assert validate_occupation(record) == []

    def test_reports_every_problem(self):
        record = Occupation(occ_code="151252", occ_title=" ", employment=-1, median_wage=-2.0, risk_score=140)

        errors = validate_occupation(record)

        assert len(errors) == 5

    def test_code_format(self):
        assert is_valid_occ_code("11-1011")
        assert not is_valid_occ_code("11-101")
        assert not is_valid_occ_code("")


class TestLoadWorkItems:
    """Tests for building the work list."""

    def test_default_is_standard_list(self):
        items = load_work_items()

        assert len(items) == len(STANDARD_OCCUPATIONS)
        assert items[0].title == STANDARD_OCCUPATIONS[items[0].code]

    def test_restricted_codes_deduplicated_and_filtered(self):
        items = load_work_items(["15-1252", " 15-1252", "bogus", "99-9999"])

        assert [i.code for i in items] == ["15-1252", "99-9999"]
        assert items[1].title is None


class TestSyncProgress:
    """Tests for derived progress values."""

    def test_percent_complete_clamped(self):
        progress = SyncProgress(total=4, processed=6)

        assert progress.percent_complete == 100.0

    def test_error_rate(self):
        assert SyncProgress(processed=8, failed=2).error_rate == 25.0
        assert SyncProgress().error_rate == 0.0

    def test_snapshot_copies_checkpoints(self):
        progress = SyncProgress(checkpoints=deque([1, 2], maxlen=5))

        snapshot = progress.snapshot()
        snapshot.checkpoints.append(3)

        assert list(progress.checkpoints) == [1, 2]
        assert snapshot.checkpoints.maxlen == 5
