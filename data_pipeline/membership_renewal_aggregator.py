"""
Membership Renewal Aggregator

Turns the rows of the MyTurn membership change report into daily and
cumulative payment/count tables, one column per tracked membership type.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Dict, Tuple, Union

import pandas as pd

from . import config


class MembershipType(str, Enum):
    FLEXIBLE = "Flexible"
    STANDARD_MONTHLY = "Standard (Monthly)"
    STANDARD_ANNUAL = "Standard (Annual)"
    SUSTAINING_ANNUAL = "Sustaining (Annual)"
    REGULAR = "regular"


TRACKED_MEMBERSHIP_TYPES = [membership_type.value for membership_type in MembershipType]

# Leading numeric prefix, e.g. "12.50 USD" -> "12.50"
COST_PATTERN = r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
# Export format, e.g. "1/15/2024" or "1/15/2024 3:15 PM"
US_DATE_PATTERN = r"^(\d{1,2}/\d{1,2}/\d{4})(?:\s|$)"


class NoRecordsError(ValueError):
    """Raised when there are no dated records to build a report from."""


@dataclass
class RenewalReport:
    daily_payments: pd.DataFrame
    daily_counts: pd.DataFrame
    cum_payments: pd.DataFrame
    cum_counts: pd.DataFrame
    generated_at: pd.Timestamp


class MembershipRenewalAggregator:
    """
    Aggregates membership change records into renewal time series.

    Every output table is indexed by the distinct report dates (ascending,
    timezone-aware local midnight) and carries one column per tracked
    membership type, zero-filled where a type had no records on a date.
    """

    def __init__(self, timezone: str = config.myturn_timezone):
        self.timezone = timezone
        self.membership_types = TRACKED_MEMBERSHIP_TYPES

    def parse_cost(self, costs: pd.Series) -> pd.Series:
        """Parse cost strings to floats; anything without a numeric prefix is 0."""
        prefix = costs.astype(str).str.extract(COST_PATTERN, expand=False)
        return pd.to_numeric(prefix, errors="coerce").fillna(0.0).astype(float)

    def parse_date(self, value) -> pd.Timestamp:
        """
        Parse one report date to a naive local calendar day, or NaT.

        M/D/YYYY (optionally followed by a time) is read strictly month-first,
        so 13/1/2024 is unparseable. Anything else is read as ISO 8601; values
        carrying a UTC offset are converted to the report timezone first.
        """
        text = str(value).strip()
        match = re.match(US_DATE_PATTERN, text)
        try:
            if match:
                parsed = pd.to_datetime(match.group(1), format="%m/%d/%Y")
            else:
                parsed = pd.Timestamp(text)
        except (ValueError, OverflowError):
            return pd.NaT
        if pd.isna(parsed):
            return pd.NaT

        if parsed.tzinfo is not None:
            parsed = parsed.tz_convert(self.timezone).tz_localize(None)
        return parsed.normalize()

    def prepare_records(self, records: Union[pd.DataFrame, List[Dict]]) -> pd.DataFrame:
        """
        Normalize raw report rows into date, membership_type and cost columns.

        Rows whose Date cannot be parsed are dropped. Untracked membership
        types are kept here so their dates still appear on the date axis.
        """
        df = pd.DataFrame(records)
        if df.empty:
            raise NoRecordsError("No membership change records to aggregate")

        missing = [col for col in ["Date", "To", "Cost"] if col not in df.columns]
        if missing:
            raise ValueError(f"Records are missing required columns: {missing}")

        prepared = pd.DataFrame(
            {
                "date": pd.to_datetime(df["Date"].map(self.parse_date)),
                # Exact match against the tracked labels, no trimming
                "membership_type": df["To"].astype(str),
                "cost": self.parse_cost(df["Cost"]),
            }
        )

        unparsed = prepared["date"].isna().sum()
        if unparsed:
            print(f"Dropping {unparsed} records with unparseable dates")
            prepared = prepared.dropna(subset=["date"])
        if prepared.empty:
            raise NoRecordsError("No membership change records with a valid date")

        prepared["date"] = prepared["date"].dt.tz_localize(self.timezone)
        return prepared.reset_index(drop=True)

    def build_daily_buckets(
        self, records: Union[pd.DataFrame, List[Dict]]
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        Sum costs and count records per date and membership type.

        Returns:
            (daily_payments, daily_counts), both dense over every date in the
            input and every tracked membership type.
        """
        df = self.prepare_records(records)

        dates = pd.DatetimeIndex(df["date"].drop_duplicates().sort_values(), name="date")
        daily_payments = pd.DataFrame(0.0, index=dates, columns=self.membership_types)
        daily_counts = pd.DataFrame(0, index=dates, columns=self.membership_types)

        tracked = df[df["membership_type"].isin(self.membership_types)]
        ignored = len(df) - len(tracked)
        if ignored:
            print(f"Ignoring {ignored} records with untracked membership types")

        for (date, membership_type), group in tracked.groupby(["date", "membership_type"]):
            daily_payments.loc[date, membership_type] = group["cost"].sum()
            daily_counts.loc[date, membership_type] = len(group)

        return daily_payments, daily_counts

    def build_cumulative_series(
        self, daily_payments: pd.DataFrame, daily_counts: pd.DataFrame
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Running totals of both daily tables in one pass over a shared date axis."""
        if daily_payments.empty:
            raise NoRecordsError("No daily buckets to accumulate")
        if not daily_payments.index.equals(daily_counts.index):
            raise ValueError("Daily payments and counts must share the same dates")

        combined = pd.concat(
            {"payments": daily_payments, "counts": daily_counts}, axis=1
        ).cumsum()
        return combined["payments"], combined["counts"]

    def aggregate(self, records: Union[pd.DataFrame, List[Dict]]) -> RenewalReport:
        print("Aggregating membership change records...")
        daily_payments, daily_counts = self.build_daily_buckets(records)
        cum_payments, cum_counts = self.build_cumulative_series(daily_payments, daily_counts)
        print(
            f"Built cumulative series for {len(cum_payments)} days "
            f"({daily_counts.to_numpy().sum()} renewals, "
            f"${daily_payments.to_numpy().sum():,.2f})"
        )
        return RenewalReport(
            daily_payments=daily_payments,
            daily_counts=daily_counts,
            cum_payments=cum_payments,
            cum_counts=cum_counts,
            generated_at=pd.Timestamp.now(tz=self.timezone),
        )

    def to_entries(self, df: pd.DataFrame) -> List[Dict]:
        """
        Convert a series table into JSON-ready entries.

        Each entry is {"date": <epoch milliseconds>, <membership type>: <value>, ...}.
        """
        entries = []
        for date, values in zip(df.index, df.to_dict("records")):
            entry = {"date": int(date.timestamp() * 1000)}
            entry.update(values)
            entries.append(entry)
        return entries
