"""Tests for the release progress calculator."""

from datetime import datetime, timedelta, timezone

import pytest

from mosaic.services.progress import Progress, compute_progress, release_interval_ms, release_tick
from mosaic.services.redactor import sample_size

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
END = datetime(2024, 1, 8, tzinfo=timezone.utc)
HOURLY = 168  # one segment per hour over seven days


class TestBoundaries:
    def test_before_start_is_zero_and_static(self):
        assert compute_progress(START - timedelta(days=1), START, END, HOURLY) == Progress(0.0, None)

    def test_exact_start_is_zero_and_static(self):
        assert compute_progress(START, START, END, HOURLY) == Progress(0.0, None)

    def test_exact_end_is_complete_and_static(self):
        assert compute_progress(END, START, END, HOURLY) == Progress(100.0, None)

    def test_after_end_is_complete_and_static(self):
        assert compute_progress(END + timedelta(seconds=1), START, END, HOURLY) == Progress(100.0, None)

    def test_continuous_near_both_edges(self):
        just_after_start = compute_progress(START + timedelta(milliseconds=1), START, END, HOURLY)
        just_before_end = compute_progress(END - timedelta(milliseconds=1), START, END, HOURLY)

        assert 0 < just_after_start.percent_released < 1e-6
        assert 100 - 1e-6 < just_before_end.percent_released < 100


class TestHourlyScenario:
    def test_half_day_in(self):
        progress = compute_progress(START + timedelta(hours=12), START, END, HOURLY)

        assert progress.percent_released == pytest.approx(100 * 12 / 168)
        assert round(progress.percent_released, 2) == 7.14
        # exactly on a tick boundary: a whole tick until the next one
        assert progress.refresh_in_seconds == 3600

    def test_refresh_is_time_to_next_hour(self):
        progress = compute_progress(START + timedelta(hours=12, minutes=20), START, END, HOURLY)
        assert progress.refresh_in_seconds == 40 * 60

    def test_interval_is_one_hour(self):
        assert release_interval_ms(START, END, HOURLY) == 3_600_000


class TestRefresh:
    def test_partial_seconds_round_up(self):
        start = START
        end = START + timedelta(seconds=10)
        # interval = ceil(10000 / 3) = 3334ms; 3333ms remain after 1ms
        progress = compute_progress(start + timedelta(milliseconds=1), start, end, 3)
        assert progress.refresh_in_seconds == 4

    @pytest.mark.parametrize(
        "offset",
        [
            timedelta(milliseconds=1),
            timedelta(minutes=59, seconds=59, milliseconds=999),
            timedelta(hours=1),
            timedelta(hours=37, minutes=12, seconds=5, microseconds=250),
            timedelta(days=6, hours=23, minutes=59),
        ],
    )
    def test_cache_lifetime_never_outlives_current_tick(self, offset):
        now = START + offset
        progress = compute_progress(now, START, END, HOURLY)
        later = now + timedelta(seconds=progress.refresh_in_seconds)

        assert progress.refresh_in_seconds > 0
        assert release_tick(later, START, END, HOURLY) > release_tick(now, START, END, HOURLY)

    def test_refresh_does_not_skip_a_tick(self):
        now = START + timedelta(hours=5, minutes=30)
        progress = compute_progress(now, START, END, HOURLY)
        later = now + timedelta(seconds=progress.refresh_in_seconds)

        assert release_tick(later, START, END, HOURLY) == release_tick(now, START, END, HOURLY) + 1


def released_count(now, start, end, n):
    return n - sample_size(n, compute_progress(now, start, end, n).percent_released)


class TestRefreshAgainstReleasedCount:
    @pytest.mark.parametrize("offset_minutes", [30, 150, 300, 450])
    def test_refresh_reaches_next_release_when_ticks_divide_window(self, offset_minutes):
        start = START
        end = START + timedelta(hours=8)
        now = start + timedelta(minutes=offset_minutes)
        progress = compute_progress(now, start, end, 8)
        later = now + timedelta(seconds=progress.refresh_in_seconds)

        assert released_count(later, start, end, 8) == released_count(now, start, end, 8) + 1

    def test_released_count_can_lead_tick_when_window_does_not_divide(self):
        n = 1000
        start = START
        end = START + timedelta(milliseconds=n * 3_600_000 - 999)
        assert release_interval_ms(start, end, n) == 3_600_000

        now = start + timedelta(milliseconds=900 * 3_600_000 - 500)
        progress = compute_progress(now, start, end, n)
        later = now + timedelta(seconds=progress.refresh_in_seconds)

        assert progress.refresh_in_seconds == 1
        assert release_tick(later, start, end, n) == release_tick(now, start, end, n) + 1
        assert released_count(now, start, end, n) == released_count(later, start, end, n) == 900


class TestInvalidInput:
    def test_zero_segments(self):
        with pytest.raises(ValueError):
            compute_progress(START, START, END, 0)

    def test_empty_window(self):
        with pytest.raises(ValueError):
            compute_progress(START, START, START, HOURLY)

    def test_reversed_window(self):
        with pytest.raises(ValueError):
            compute_progress(START, END, START, HOURLY)


def test_release_tick_is_clamped():
    assert release_tick(START - timedelta(days=3), START, END, HOURLY) == 0
    assert release_tick(END + timedelta(days=3), START, END, HOURLY) == HOURLY
