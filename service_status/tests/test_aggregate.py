"""
Unit tests for summary recomputation and validation.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_status.app.domain.aggregate import issue_categories, recompute_summary, validate_summary
from service_status.app.domain.models import EquipmentSummary


class TestRecomputeSummary:
    """Test cases for recompute_summary."""

    def test_no_suppression_is_identity_on_consistent_input(self):
        raw = EquipmentSummary(good=80, warning=5, down=10, uninventoried=5, total=100)

        assert recompute_summary(raw, 0, 0) == raw

    def test_typical_directory_snapshot(self):
        raw = EquipmentSummary(good=1489, warning=9, down=71, uninventoried=1, total=1570)

        visible = recompute_summary(raw, suppressed_down=1, suppressed_warning=0)

        assert visible.to_dict() == {
            "good": 1489,
            "warning": 9,
            "down": 70,
            "uninventoried": 1,
            "total": 1569,
        }

    def test_inconsistent_upstream_is_not_clamped(self):
        # suppressed counts cancel out of good; over-suppression surfaces as a
        # negative down, and the negative good comes from the raw counts alone
        raw = EquipmentSummary(good=-2, warning=2, down=3, uninventoried=97, total=100)

        visible = recompute_summary(raw, suppressed_down=4, suppressed_warning=1)

        assert visible.total == 95
        assert visible.down == -1
        assert visible.warning == 1
        assert visible.uninventoried == 97
        assert visible.good == -2

    @pytest.mark.parametrize(
        "raw, suppressed_down, suppressed_warning",
        [
            (EquipmentSummary(good=10, warning=3, down=4, uninventoried=2, total=19), 2, 1),
            (EquipmentSummary(good=0, warning=0, down=0, uninventoried=0, total=0), 0, 0),
            (EquipmentSummary(good=5, warning=1, down=1, uninventoried=50, total=57), 1, 1),
        ],
    )
    def test_identities_hold(self, raw, suppressed_down, suppressed_warning):
        visible = recompute_summary(raw, suppressed_down, suppressed_warning)

        assert visible.total == raw.total - suppressed_down - suppressed_warning
        assert visible.down == raw.down - suppressed_down
        assert visible.warning == raw.warning - suppressed_warning
        assert visible.uninventoried == raw.uninventoried
        assert visible.good == visible.total - visible.down - visible.warning - visible.uninventoried

    def test_suppression_does_not_touch_uninventoried(self):
        raw = EquipmentSummary(good=0, warning=0, down=2, uninventoried=8, total=10)

        visible = recompute_summary(raw, suppressed_down=2, suppressed_warning=0)

        assert visible.uninventoried == 8
        assert visible.good == 0


class TestValidateSummary:
    """Test cases for validate_summary."""

    def test_clean_summary_has_no_issues(self):
        summary = EquipmentSummary(good=80, warning=5, down=10, uninventoried=5, total=100)
        assert validate_summary(summary) == []

    def test_negative_categories_reported(self):
        summary = EquipmentSummary(good=-2, warning=1, down=-1, uninventoried=97, total=95)

        issues = validate_summary(summary)

        assert issue_categories(issues) == ["good", "down"]

    def test_broken_good_identity_reported(self):
        summary = EquipmentSummary(good=50, warning=5, down=10, uninventoried=5, total=100)

        issues = validate_summary(summary)

        assert len(issues) == 1
        assert "good (50)" in issues[0]
        assert issue_categories(issues) == ["good"]
