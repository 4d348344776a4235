"""
Tests for plan feature allow-lists (FeatureRestriction, PlanFilters).

The three states must never be conflated:
- key absent  -> unrestricted
- key present, empty -> nothing allowed
- key present, values -> only those (or everything when "ALL" is listed)
"""

import pytest

from examprep.entitlements.features import (
    ALLOWED_EXAMS_KEY,
    ALLOWED_YEARS_KEY,
    FeatureRestriction,
    RestrictionKind,
)
from examprep.entitlements.models import PlanFilters


class TestFromFeatures:

    def test_missing_key_is_unrestricted(self):
        restriction = FeatureRestriction.from_features({}, ALLOWED_EXAMS_KEY)

        assert restriction.kind == RestrictionKind.UNRESTRICTED
        assert restriction.allows("WAEC")
        assert restriction.as_optional_list() is None

    def test_no_features_is_unrestricted(self):
        assert FeatureRestriction.from_features(None, ALLOWED_EXAMS_KEY).is_unrestricted

    def test_null_value_is_unrestricted(self):
        assert FeatureRestriction.from_features({ALLOWED_EXAMS_KEY: None}, ALLOWED_EXAMS_KEY).is_unrestricted

    def test_empty_list_allows_nothing(self):
        restriction = FeatureRestriction.from_features({ALLOWED_EXAMS_KEY: []}, ALLOWED_EXAMS_KEY)

        assert restriction.is_none_allowed
        assert not restriction.is_unrestricted
        assert not restriction.allows("WAEC")
        assert restriction.as_optional_list() == []

    def test_all_sentinel_is_unrestricted_but_reported_verbatim(self):
        restriction = FeatureRestriction.from_features({ALLOWED_EXAMS_KEY: ["ALL"]}, ALLOWED_EXAMS_KEY)

        assert restriction.kind == RestrictionKind.ONLY_THESE
        assert restriction.is_unrestricted
        assert restriction.allows("anything")
        assert restriction.as_optional_list() == ["ALL"]

    def test_listed_values_only(self):
        restriction = FeatureRestriction.from_features({ALLOWED_EXAMS_KEY: ["WAEC"]}, ALLOWED_EXAMS_KEY)

        assert restriction.allows("WAEC")
        assert not restriction.allows("JAMB")

    def test_any_candidate_may_match(self):
        restriction = FeatureRestriction.only(["exam-123"])

        assert restriction.allows("WAEC", "exam-123")
        assert not restriction.allows("WAEC", None)

    def test_years_compare_as_strings(self):
        restriction = FeatureRestriction.from_features({ALLOWED_YEARS_KEY: ["2021", "2022"]}, ALLOWED_YEARS_KEY)

        assert restriction.allows(2021)
        assert not restriction.allows(2019)

    def test_malformed_value_fails_closed(self):
        restriction = FeatureRestriction.from_features({ALLOWED_EXAMS_KEY: "WAEC"}, ALLOWED_EXAMS_KEY)

        assert restriction.is_none_allowed


class TestRestrictionConstruction:

    def test_only_with_no_values_is_none_allowed(self):
        assert FeatureRestriction.only([]).is_none_allowed

    def test_only_these_requires_values(self):
        with pytest.raises(ValueError):
            FeatureRestriction(RestrictionKind.ONLY_THESE)

    def test_unrestricted_cannot_carry_values(self):
        with pytest.raises(ValueError):
            FeatureRestriction(RestrictionKind.UNRESTRICTED, ("WAEC",))


class TestPlanFiltersToDict:

    def test_absent_keys_are_omitted(self):
        filters = PlanFilters(allowed_exam_ids=FeatureRestriction.only(["WAEC"]))

        assert filters.to_dict() == {"allowedExamIds": ["WAEC"]}

    def test_empty_lists_are_kept(self):
        filters = PlanFilters(
            allowed_subject_ids=FeatureRestriction.none_allowed(),
            allowed_years=FeatureRestriction.only(["2020"]),
        )

        assert filters.to_dict() == {"allowedSubjectIds": [], "allowedYears": ["2020"]}

    def test_block_all(self):
        assert PlanFilters.block_all().to_dict() == {
            "allowedExamIds": [],
            "allowedSubjectIds": [],
            "allowedYears": [],
        }

    def test_default_is_unrestricted(self):
        assert PlanFilters().to_dict() == {}
