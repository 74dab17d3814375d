"""Tests for renovate_config/branches/naming.py and expiry.py."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from renovate_config.branches.counter import BranchIdCounter
from renovate_config.branches.expiry import MAXIMUM_AGE, has_expired
from renovate_config.branches.naming import (
    FeatureBranchName,
    RenovateBranchPrefix,
    TemporaryBranchName,
    format_timestamp,
    parse_timestamp,
    tokenize,
)

BRANCH_ID = "dab5d7514d194cdcbdfac98939b18b3d"
CREATED_AT = datetime(2025, 4, 3, 20, 0, 16, tzinfo=UTC)


class TestTimestampCodec:
    """Tests for the 14-digit timestamp token."""

    def test_format_timestamp(self):
        """Should render UTC time as YYYYMMDDHHMMSS."""
        assert format_timestamp(CREATED_AT) == "20250403200016"

    def test_format_timestamp_converts_to_utc(self):
        """Should convert aware times in other offsets to UTC first."""
        eastern = CREATED_AT.astimezone(timezone(timedelta(hours=-4)))

        assert format_timestamp(eastern) == "20250403200016"

    def test_parse_timestamp(self):
        """Should parse a valid token as an aware UTC datetime."""
        parsed = parse_timestamp("20250403200016")

        assert parsed == CREATED_AT
        assert parsed.tzinfo is UTC

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "2025040320001",
            "202504032000160",
            "2025-04-03T20:0",
            "20251303200016",
            "20250230200016",
            "20250403250016",
            "2025040320001a",
            "２０２５０４０３２０００１６",
        ],
    )
    def test_parse_timestamp_rejects_invalid(self, text):
        """Should return None for malformed or impossible timestamps."""
        assert parse_timestamp(text) is None

    def test_tokenize_splits_on_both_delimiters(self):
        """Should split on every slash and underscore."""
        assert tokenize("renovate/20250403200016_42_major-microsoft") == [
            "renovate",
            "20250403200016",
            "42",
            "major-microsoft",
        ]


class TestTemporaryBranchName:
    """Tests for the shared identity normalization."""

    def test_truncates_to_whole_seconds(self):
        """Should drop sub-second precision."""
        identity = TemporaryBranchName(CREATED_AT.replace(microsecond=999_999), "1")

        assert identity.created_at == CREATED_AT

    def test_naive_time_is_taken_as_utc(self):
        """Should attach UTC to naive datetimes."""
        identity = TemporaryBranchName(datetime(2025, 4, 3, 20, 0, 16), "1")

        assert identity.created_at == CREATED_AT
        assert identity.created_at.tzinfo is UTC

    def test_aware_time_is_converted_to_utc(self):
        """Should normalize other offsets to UTC."""
        identity = TemporaryBranchName(CREATED_AT.astimezone(timezone(timedelta(hours=2))), "1")

        assert identity.created_at.tzinfo is UTC
        assert identity.timestamp == "20250403200016"

    def test_is_immutable(self):
        """Should be frozen."""
        identity = TemporaryBranchName(CREATED_AT, "1")

        with pytest.raises(AttributeError):
            identity.id = "2"  # type: ignore[misc]


class TestFeatureBranchName:
    """Tests for FeatureBranchName."""

    def test_parse_happy_path(self):
        """Should parse date and id from a feature branch name."""
        result = FeatureBranchName.parse(f"feature/20250403200016_{BRANCH_ID}")

        assert result is not None
        assert result.created_at == CREATED_AT
        assert result.id == BRANCH_ID
        assert result.name == f"feature/20250403200016_{BRANCH_ID}"
        assert str(result) == result.name

    @pytest.mark.parametrize(
        "branch_name",
        [
            "main",
            "renovate/major-microsoft",
            "feature/something",
            "feature/20250403200016",
            f"feature/20250403200016-{BRANCH_ID}",
            f"feature/20250403200016_{BRANCH_ID}_",
            f"renovate/20250403200016_{BRANCH_ID}",
            f"feature/20251303200016_{BRANCH_ID}",
            "",
            "feature_20250403200016_42",
            "team/feature/20250403200016_42",
        ],
    )
    def test_parse_fail(self, branch_name):
        """Should return None for anything but an exact feature branch name."""
        assert FeatureBranchName.parse(branch_name) is None

    def test_has_expired_boundaries(self):
        """Should expire at exactly created_at + MAXIMUM_AGE, not before."""
        result = FeatureBranchName.parse(f"feature/20250403200016_{BRANCH_ID}")

        assert not result.has_expired(CREATED_AT)
        assert result.has_expired(CREATED_AT + MAXIMUM_AGE)
        assert not result.has_expired(CREATED_AT + MAXIMUM_AGE - timedelta(microseconds=1))

    def test_create_uses_counter_and_clock(self):
        """Should mint an identity from the counter and the given time."""
        counter = BranchIdCounter()

        first = FeatureBranchName.create(counter, now=CREATED_AT)
        second = FeatureBranchName.create(counter, now=CREATED_AT)

        assert first.name == "feature/20250403200016_1"
        assert second.name == "feature/20250403200016_2"
        assert first != second

    def test_create_defaults_to_current_time(self):
        """Should use the current UTC time when none is given."""
        before = datetime.now(UTC).replace(microsecond=0)
        branch = FeatureBranchName.create(BranchIdCounter())
        after = datetime.now(UTC)

        assert before <= branch.created_at <= after
        assert not branch.has_expired()

    def test_round_trip(self):
        """Should parse its own name back to an equal identity."""
        branch = FeatureBranchName.create(BranchIdCounter(41), now=CREATED_AT)

        assert FeatureBranchName.parse(branch.name) == branch

    def test_session_counter_mints_unique_names(self, branch_counter):
        """Should never mint the same name twice from the shared counter."""
        names = {FeatureBranchName.create(branch_counter, now=CREATED_AT).name for _ in range(50)}

        assert len(names) == 50


class TestRenovateBranchPrefix:
    """Tests for RenovateBranchPrefix."""

    def test_parse_happy_path(self):
        """Should parse a renovate branch and ignore renovate's suffix."""
        result = RenovateBranchPrefix.parse(f"renovate/20250403200016_{BRANCH_ID}_major-microsoft")

        assert result is not None
        assert result.created_at == CREATED_AT
        assert result.id == BRANCH_ID
        assert result.prefix == f"renovate/20250403200016_{BRANCH_ID}_"
        assert str(result) == result.prefix

    def test_parse_suffix_with_more_delimiters(self):
        """Should ignore every token after the id."""
        result = RenovateBranchPrefix.parse("renovate/20250403200016_7_dotnet_monorepo/major")

        assert result is not None
        assert result.id == "7"

    def test_parse_bare_prefix(self):
        """Should accept the prefix itself."""
        result = RenovateBranchPrefix.parse(f"renovate/20250403200016_{BRANCH_ID}_")

        assert result is not None
        assert result.id == BRANCH_ID

    @pytest.mark.parametrize(
        "branch_name",
        [
            "main",
            "renovate/major-microsoft",
            f"feature/20250403200016_{BRANCH_ID}",
            f"feature/20250403200016_{BRANCH_ID}_",
            "renovate/notadate_1_suffix",
            "renovate/20250403200016",
            "renovate_20250403200016_42_x",
            "renovate_20250403200016_42_",
            "bot/renovate/20250403200016_42_x",
        ],
    )
    def test_parse_fail(self, branch_name):
        """Should return None for names not created under a temporary prefix."""
        assert RenovateBranchPrefix.parse(branch_name) is None

    def test_has_expired_boundaries(self):
        """Should expire at exactly created_at + MAXIMUM_AGE, not before."""
        result = RenovateBranchPrefix.parse(f"renovate/20250403200016_{BRANCH_ID}_major-microsoft")

        assert not result.has_expired(CREATED_AT)
        assert result.has_expired(CREATED_AT + MAXIMUM_AGE)
        assert not result.has_expired(CREATED_AT + MAXIMUM_AGE - timedelta(microseconds=1))

    def test_from_feature_branch(self):
        """Should share created_at and id with its feature branch."""
        feature_branch = FeatureBranchName(CREATED_AT, "42")

        prefix = RenovateBranchPrefix.from_feature_branch(feature_branch)

        assert prefix.prefix == "renovate/20250403200016_42_"
        assert prefix.belongs_to(feature_branch)

    def test_belongs_to_requires_matching_time_and_id(self):
        """Should not correlate branches from other runs."""
        feature_branch = FeatureBranchName(CREATED_AT, "42")

        assert not RenovateBranchPrefix(CREATED_AT, "43").belongs_to(feature_branch)
        assert not RenovateBranchPrefix(CREATED_AT + timedelta(seconds=1), "42").belongs_to(feature_branch)

    def test_prefix_round_trip(self):
        """Should parse a name built from its own prefix."""
        prefix = RenovateBranchPrefix(CREATED_AT, "9")

        assert RenovateBranchPrefix.parse(prefix.prefix + "patch-deps") == prefix


class TestHasExpired:
    """Tests for the expiry policy."""

    def test_custom_max_age(self):
        """Should honour a custom maximum age."""
        identity = TemporaryBranchName(CREATED_AT, "1")

        assert has_expired(identity, CREATED_AT + timedelta(minutes=5), timedelta(minutes=5))
        assert not has_expired(identity, CREATED_AT + timedelta(minutes=4), timedelta(minutes=5))

    def test_defaults_to_now(self):
        """Should compare against the current time by default."""
        assert has_expired(TemporaryBranchName(datetime(2000, 1, 1, tzinfo=UTC), "1"))
        assert not has_expired(TemporaryBranchName(datetime.now(UTC), "1"))

    def test_future_branch_is_not_expired(self):
        """Should treat branches from the future as fresh."""
        identity = TemporaryBranchName(CREATED_AT + timedelta(days=1), "1")

        assert not has_expired(identity, CREATED_AT)

    def test_naive_now_is_utc(self):
        """Should read a naive reference time as UTC, like naive creation times."""
        branch = FeatureBranchName(datetime(2025, 4, 3, 20, 0, 16), "1")

        assert branch.has_expired(datetime(2025, 4, 3, 22, 0, 16))
        assert not branch.has_expired(datetime(2025, 4, 3, 22, 0, 15))

    def test_aware_now_in_other_zone(self):
        """Should compare instants when the reference time is not in UTC."""
        eastern = timezone(timedelta(hours=-4))

        assert has_expired(TemporaryBranchName(CREATED_AT, "1"), datetime(2025, 4, 3, 18, 0, 16, tzinfo=eastern))
        assert not has_expired(
            TemporaryBranchName(CREATED_AT, "1"), datetime(2025, 4, 3, 18, 0, 15, tzinfo=eastern)
        )
