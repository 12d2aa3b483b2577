"""
MyTurn Membership Change Report Fetcher

Logs in to the MyTurn library admin with a form login and downloads the
membership change report as CSV for a date range.
"""

import io
from datetime import datetime, timedelta, date
from typing import Optional, Tuple

import pandas as pd
import requests

from . import config

REQUIRED_COLUMNS = ["Date", "To", "Cost"]


class MyTurnError(Exception):
    """Base class for MyTurn report fetch failures."""


class AuthenticationError(MyTurnError):
    pass


class NetworkError(MyTurnError):
    pass


class ParseError(MyTurnError):
    pass


class MyTurnDataFetcher:
    """
    A class for fetching the MyTurn membership change report.

    The session cookie from the login POST is kept on a requests.Session and
    reused for the export request.
    """

    def __init__(
        self,
        username: Optional[str],
        password: Optional[str],
        host: str = config.myturn_host,
        timezone: str = config.myturn_timezone,
        timeout: int = config.request_timeout,
    ):
        self.username = username
        self.password = password
        self.timezone = timezone
        self.timeout = timeout
        self.base_url = f"https://{host}/library/"
        self.session = requests.Session()
        self.session_cookie = None

    @staticmethod
    def format_date(value: date) -> str:
        """MyTurn expects M/D/YYYY without zero padding."""
        return f"{value.month}/{value.day}/{value.year}"

    @staticmethod
    def get_report_date_range(
        days_back: int = config.lookback_days, today: Optional[datetime] = None
    ) -> Tuple[datetime, datetime]:
        end_date = today or datetime.now()
        start_date = end_date - timedelta(days=days_back)
        return start_date, end_date

    def login(self) -> str:
        """
        Log in with j_username/j_password and return the JSESSIONID value.
        """
        if not self.username or not self.password:
            raise AuthenticationError(
                "MYTURN_USERNAME and MYTURN_PASSWORD environment variables must be set."
            )

        url = self.base_url + "j_spring_security_check"
        print(f"Logging in to {url}")
        try:
            response = self.session.post(
                url,
                data={"j_username": self.username, "j_password": self.password},
                allow_redirects=False,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Login request failed: {e}") from e

        if response.status_code >= 500:
            raise NetworkError(f"Login failed with status code {response.status_code}")

        location = response.headers.get("Location", "")
        # Spring Security redirects failed logins to .../login?login_error=1
        if "error" in location.lower():
            raise AuthenticationError("MyTurn rejected the username or password")

        session_cookie = response.cookies.get("JSESSIONID") or self.session.cookies.get(
            "JSESSIONID"
        )
        if not session_cookie:
            raise AuthenticationError("Login response did not include a JSESSIONID cookie")

        self.session_cookie = session_cookie
        print("Successful login to MyTurn")
        return session_cookie

    def get_report_csv(self, start_date: datetime, end_date: datetime) -> str:
        """
        Request the membership change report export for the given date range.
        """
        if not self.session_cookie:
            self.login()

        url = self.base_url + "orgMembership/exportMembershipChangeReport"
        form = [
            ("from", "struct"),
            ("from_date", self.format_date(start_date)),
            ("from_tz", self.timezone),
            ("from_time", "00:00"),
            ("to", "struct"),
            ("to_date", self.format_date(end_date)),
            ("to_tz", self.timezone),
            ("to_time", "23:59:59.999"),
            ("type", "0"),
            ("format", "csv"),
            ("extension", "csv"),
        ]
        print(
            f"Fetching membership change report from "
            f"{self.format_date(start_date)} to {self.format_date(end_date)}"
        )
        try:
            response = self.session.post(url, data=form, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Report export request failed: {e}") from e

        return response.text

    def parse_report(self, csv_text: str) -> pd.DataFrame:
        """
        Parse the CSV export into a DataFrame of string columns.
        """
        try:
            df = pd.read_csv(
                io.StringIO(csv_text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ParseError(f"Could not parse membership change report: {e}") from e

        df.columns = [str(col).strip() for col in df.columns]
        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ParseError(f"Membership change report is missing columns: {missing}")

        print(f"Parsed {len(df)} membership change records")
        return df

    def fetch_records(self, start_date: datetime, end_date: datetime) -> pd.DataFrame:
        csv_text = self.get_report_csv(start_date, end_date)
        return self.parse_report(csv_text)


if __name__ == "__main__":
    fetcher = MyTurnDataFetcher(config.myturn_username, config.myturn_password)
    start_date, end_date = fetcher.get_report_date_range()
    df = fetcher.fetch_records(start_date, end_date)
    print(df.head())
