from datetime import datetime, timedelta, timezone

import pytest

from course_chat.core.channels import normalize_channel_code
from course_chat.core.exceptions import ValidationError
from course_chat.core.freshness import as_utc, is_fresh

NOW = datetime(2024, 3, 4, 12, 0, 0, tzinfo=timezone.utc)


def test_missing_timestamp_is_never_fresh():
    assert is_fresh(None, 120, NOW) is False


def test_freshness_threshold_is_strict():
    assert is_fresh(NOW - timedelta(seconds=119), 120, NOW)
    assert not is_fresh(NOW - timedelta(seconds=120), 120, NOW)
    assert not is_fresh(NOW - timedelta(seconds=121), 120, NOW)


def test_naive_timestamps_are_read_as_utc():
    naive = (NOW - timedelta(seconds=3)).replace(tzinfo=None)
    assert is_fresh(naive, 5, NOW)
    assert as_utc(naive).tzinfo == timezone.utc


def test_future_timestamp_counts_as_fresh():
    assert is_fresh(NOW + timedelta(seconds=30), 5, NOW)


@pytest.mark.parametrize("raw, expected", [("csm101", "CSM101"), ("  General ", "GENERAL")])
def test_channel_codes_are_normalized(raw, expected):
    assert normalize_channel_code(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", None, "X" * 21])
def test_bad_channel_codes_are_rejected(raw):
    with pytest.raises(ValidationError):
        normalize_channel_code(raw)
