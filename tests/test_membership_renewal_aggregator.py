"""
Tests for the membership renewal aggregation: daily buckets, cumulative
series and JSON entries.
"""

import pandas as pd
import pytest

from data_pipeline.membership_renewal_aggregator import (
    MembershipRenewalAggregator,
    MembershipType,
    NoRecordsError,
    TRACKED_MEMBERSHIP_TYPES,
)

SCENARIO_RECORDS = [
    {"Date": "1/1/2024", "To": "Flexible", "Cost": "10"},
    {"Date": "1/1/2024", "To": "Flexible", "Cost": "abc"},
    {"Date": "1/2/2024", "To": "Flexible", "Cost": "5"},
    {"Date": "1/2/2024", "To": "Unknown", "Cost": "999"},
]

MIXED_RECORDS = [
    {"Date": "10/1/2024", "To": "Standard (Annual)", "Cost": "120"},
    {"Date": "2/1/2024", "To": "Flexible", "Cost": "15.50"},
    {"Date": "2/1/2024", "To": "Standard (Monthly)", "Cost": "12"},
    {"Date": "3/15/2024", "To": "regular", "Cost": ""},
    {"Date": "3/15/2024", "To": "Sustaining (Annual)", "Cost": "250"},
    {"Date": "10/1/2024", "To": "Flexible", "Cost": "20"},
    {"Date": "3/15/2024", "To": "Trial", "Cost": "7"},
]


@pytest.fixture
def aggregator():
    return MembershipRenewalAggregator(timezone="America/Los_Angeles")


def test_tracked_types_are_the_fixed_enumeration():
    assert TRACKED_MEMBERSHIP_TYPES == [
        "Flexible",
        "Standard (Monthly)",
        "Standard (Annual)",
        "Sustaining (Annual)",
        "regular",
    ]
    assert MembershipType("Flexible") is MembershipType.FLEXIBLE


def test_scenario_daily_buckets(aggregator):
    daily_payments, daily_counts = aggregator.build_daily_buckets(SCENARIO_RECORDS)

    assert len(daily_payments) == 2
    assert daily_payments["Flexible"].tolist() == [10.0, 5.0]
    assert daily_counts["Flexible"].tolist() == [2, 1]
    assert "Unknown" not in daily_payments.columns
    for membership_type in TRACKED_MEMBERSHIP_TYPES[1:]:
        assert daily_payments[membership_type].tolist() == [0.0, 0.0]
        assert daily_counts[membership_type].tolist() == [0, 0]


def test_scenario_cumulative_series(aggregator):
    report = aggregator.aggregate(SCENARIO_RECORDS)

    assert report.cum_payments["Flexible"].tolist() == [10.0, 15.0]
    assert report.cum_counts["Flexible"].tolist() == [2, 3]


def test_two_types_on_same_date_are_both_present(aggregator):
    records = [
        {"Date": "5/4/2024", "To": "Flexible", "Cost": "10"},
        {"Date": "5/4/2024", "To": "regular", "Cost": "3"},
    ]
    daily_payments, daily_counts = aggregator.build_daily_buckets(records)

    row = daily_payments.iloc[0]
    assert row["Flexible"] == 10.0
    assert row["regular"] == 3.0
    assert row["Standard (Monthly)"] == 0.0
    assert daily_counts.iloc[0].to_dict() == {
        "Flexible": 1,
        "Standard (Monthly)": 0,
        "Standard (Annual)": 0,
        "Sustaining (Annual)": 0,
        "regular": 1,
    }


def test_empty_input_raises(aggregator):
    with pytest.raises(NoRecordsError):
        aggregator.aggregate([])
    with pytest.raises(NoRecordsError):
        aggregator.aggregate(pd.DataFrame(columns=["Date", "From", "To", "Cost"]))


def test_only_unparseable_dates_raises(aggregator):
    with pytest.raises(NoRecordsError):
        aggregator.aggregate([{"Date": "not a date", "To": "Flexible", "Cost": "1"}])


def test_unparseable_dates_are_dropped(aggregator):
    records = SCENARIO_RECORDS + [{"Date": "", "To": "Flexible", "Cost": "100"}]
    report = aggregator.aggregate(records)

    assert report.cum_payments["Flexible"].tolist() == [10.0, 15.0]


def test_missing_columns_raise(aggregator):
    with pytest.raises(ValueError):
        aggregator.aggregate([{"Date": "1/1/2024", "Cost": "1"}])


def test_dates_sort_as_calendar_dates(aggregator):
    daily_payments, _ = aggregator.build_daily_buckets(MIXED_RECORDS)

    dates = [ts.strftime("%Y-%m-%d") for ts in daily_payments.index]
    assert dates == ["2024-02-01", "2024-03-15", "2024-10-01"]
    assert daily_payments.index.is_monotonic_increasing
    assert daily_payments.index.is_unique


def test_same_calendar_day_in_different_formats_folds_into_one_bucket(aggregator):
    records = [
        {"Date": "1/1/2024", "To": "Flexible", "Cost": "1"},
        {"Date": "01/01/2024", "To": "Flexible", "Cost": "2"},
        {"Date": "1/1/2024 3:15 PM", "To": "Flexible", "Cost": "3"},
    ]
    daily_payments, daily_counts = aggregator.build_daily_buckets(records)

    assert len(daily_payments) == 1
    assert daily_payments.iloc[0]["Flexible"] == 6.0
    assert daily_counts.iloc[0]["Flexible"] == 3


def test_offset_timestamps_fold_with_naive_dates_on_the_same_local_day(aggregator):
    records = [
        {"Date": "1/1/2024", "To": "Flexible", "Cost": "1"},
        {"Date": "2024-01-01T10:00:00-08:00", "To": "Flexible", "Cost": "2"},
        # 02:00 UTC on Jan 2 is still Jan 1 in Los Angeles
        {"Date": "2024-01-02T02:00:00+00:00", "To": "Flexible", "Cost": "4"},
    ]
    daily_payments, daily_counts = aggregator.build_daily_buckets(records)

    assert len(daily_payments) == 1
    assert daily_payments.index[0] == pd.Timestamp("2024-01-01", tz="America/Los_Angeles")
    assert daily_payments.iloc[0]["Flexible"] == 7.0
    assert daily_counts.iloc[0]["Flexible"] == 3


def test_out_of_range_month_is_unparseable(aggregator):
    records = [
        {"Date": "13/1/2024", "To": "Flexible", "Cost": "100"},
        {"Date": "1/13/2024", "To": "Flexible", "Cost": "5"},
    ]
    daily_payments, _ = aggregator.build_daily_buckets(records)

    assert [ts.strftime("%Y-%m-%d") for ts in daily_payments.index] == ["2024-01-13"]
    assert daily_payments.iloc[0]["Flexible"] == 5.0

    with pytest.raises(NoRecordsError):
        aggregator.aggregate([{"Date": "13/1/2024", "To": "Flexible", "Cost": "1"}])


def test_membership_type_must_match_exactly(aggregator):
    records = [
        {"Date": "1/1/2024", "To": " Flexible ", "Cost": "10"},
        {"Date": "1/1/2024", "To": "flexible", "Cost": "10"},
        {"Date": "1/1/2024", "To": "Flexible", "Cost": "1"},
    ]
    report = aggregator.aggregate(records)

    assert report.cum_counts["Flexible"].tolist() == [1]
    assert report.cum_payments["Flexible"].tolist() == [1.0]


def test_first_cumulative_row_equals_first_daily_row(aggregator):
    report = aggregator.aggregate(MIXED_RECORDS)

    assert report.cum_payments.index[0] == report.daily_payments.index[0]
    assert report.cum_payments.iloc[0].equals(report.daily_payments.iloc[0])
    assert report.cum_counts.iloc[0].equals(report.daily_counts.iloc[0])


def test_cumulative_is_previous_plus_daily(aggregator):
    report = aggregator.aggregate(MIXED_RECORDS)

    for series, daily in [
        (report.cum_payments, report.daily_payments),
        (report.cum_counts, report.daily_counts),
    ]:
        assert series.index.equals(daily.index)
        for i in range(1, len(series)):
            for membership_type in TRACKED_MEMBERSHIP_TYPES:
                assert series.iloc[i][membership_type] == pytest.approx(
                    series.iloc[i - 1][membership_type] + daily.iloc[i][membership_type]
                )


def test_cumulative_series_are_non_decreasing(aggregator):
    report = aggregator.aggregate(MIXED_RECORDS)

    for series in [report.cum_payments, report.cum_counts]:
        for membership_type in TRACKED_MEMBERSHIP_TYPES:
            assert series[membership_type].is_monotonic_increasing


def test_untracked_records_do_not_change_values(aggregator):
    tracked_only = [r for r in MIXED_RECORDS if r["To"] in TRACKED_MEMBERSHIP_TYPES]

    with_untracked = aggregator.aggregate(MIXED_RECORDS)
    without_untracked = aggregator.aggregate(tracked_only)

    pd.testing.assert_frame_equal(with_untracked.cum_payments, without_untracked.cum_payments)
    pd.testing.assert_frame_equal(with_untracked.cum_counts, without_untracked.cum_counts)


def test_date_with_only_untracked_records_adds_a_flat_row(aggregator):
    records = [
        {"Date": "1/1/2024", "To": "Flexible", "Cost": "10"},
        {"Date": "1/5/2024", "To": "Trial", "Cost": "10"},
    ]
    report = aggregator.aggregate(records)

    assert len(report.cum_payments) == 2
    assert report.daily_counts.iloc[1].sum() == 0
    assert report.cum_payments["Flexible"].tolist() == [10.0, 10.0]


def test_unparseable_cost_counts_but_adds_nothing(aggregator):
    records = [
        {"Date": "6/1/2024", "To": "regular", "Cost": "n/a"},
        {"Date": "6/1/2024", "To": "regular", "Cost": None},
    ]
    report = aggregator.aggregate(records)

    assert report.cum_payments["regular"].tolist() == [0.0]
    assert report.cum_counts["regular"].tolist() == [2]


def test_parse_cost_uses_leading_number(aggregator):
    costs = pd.Series(["12.50", "12.50 USD", " 7", "-3", ".5", "abc", "", "$4", "1e2"])

    assert aggregator.parse_cost(costs).tolist() == [
        12.5, 12.5, 7.0, -3.0, 0.5, 0.0, 0.0, 0.0, 100.0
    ]


def test_accepts_dataframe_input(aggregator):
    report = aggregator.aggregate(pd.DataFrame(SCENARIO_RECORDS))

    assert report.cum_counts["Flexible"].tolist() == [2, 3]


def test_build_cumulative_series_requires_shared_dates(aggregator):
    daily_payments, daily_counts = aggregator.build_daily_buckets(MIXED_RECORDS)

    with pytest.raises(ValueError):
        aggregator.build_cumulative_series(daily_payments, daily_counts.iloc[1:])


def test_to_entries_uses_local_midnight_epoch_millis(aggregator):
    report = aggregator.aggregate(SCENARIO_RECORDS)
    entries = aggregator.to_entries(report.cum_payments)

    # 2024-01-01 00:00 in Los Angeles is 08:00 UTC
    assert entries[0]["date"] == 1704096000000
    assert entries[1]["date"] == 1704096000000 + 24 * 60 * 60 * 1000
    assert list(entries[0].keys()) == ["date"] + TRACKED_MEMBERSHIP_TYPES
    assert entries[1]["Flexible"] == 15.0
    assert isinstance(entries[0]["date"], int)


def test_to_entries_keeps_counts_as_ints(aggregator):
    report = aggregator.aggregate(SCENARIO_RECORDS)
    entries = aggregator.to_entries(report.cum_counts)

    assert entries[1]["Flexible"] == 3
    assert all(isinstance(entry["Flexible"], int) for entry in entries)
