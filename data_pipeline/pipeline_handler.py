from data_pipeline import fetch_myturn_membership_changes
from data_pipeline import membership_renewal_aggregator
from data_pipeline import upload_data as upload_data
import datetime
from data_pipeline import config


def fetch_membership_change_records(days=config.lookback_days, end_date=None):
    """
    Fetches the MyTurn membership change report for the last X days.
    """
    fetcher = fetch_myturn_membership_changes.MyTurnDataFetcher(
        config.myturn_username, config.myturn_password
    )
    start_date, end_date = fetcher.get_report_date_range(days_back=days, today=end_date)
    return fetcher.fetch_records(start_date, end_date)


def build_report_artifacts(report, aggregator):
    """
    Returns the three JSON artifacts of a report keyed by name.
    """
    return {
        "cum_payments": aggregator.to_entries(report.cum_payments),
        "cum_counts": aggregator.to_entries(report.cum_counts),
        "today": {"today": int(report.generated_at.timestamp() * 1000)},
    }


def upload_new_membership_renewal_report(save_local=True, days=config.lookback_days):
    """
    Fetches the membership change report, aggregates it into cumulative payment
    and count series and saves them locally and/or to s3.

    Any fetch or aggregation error propagates before anything is written.
    """
    df_records = fetch_membership_change_records(days=days)

    aggregator = membership_renewal_aggregator.MembershipRenewalAggregator()
    report = aggregator.aggregate(df_records)
    artifacts = build_report_artifacts(report, aggregator)

    uploader = upload_data.DataUploader()
    if save_local:
        print(
            f"saving local files in {config.json_path_cum_payments}, "
            f"{config.json_path_cum_counts} and {config.json_path_today}"
        )
        uploader.save_json_files_locally(
            {
                config.json_path_cum_payments: artifacts["cum_payments"],
                config.json_path_cum_counts: artifacts["cum_counts"],
                config.json_path_today: artifacts["today"],
            }
        )

    if not config.aws_bucket_name:
        print("AWS_BUCKET_NAME not set, skipping s3 upload")
        return report

    print("uploading membership renewal report to s3")
    uploader.upload_multiple_json_to_s3(
        {
            config.s3_path_cum_payments: artifacts["cum_payments"],
            config.s3_path_cum_counts: artifacts["cum_counts"],
            config.s3_path_today: artifacts["today"],
        },
        config.aws_bucket_name,
    )

    # if it is the first day of the month, we upload the files to s3 with the date in the filename
    today = datetime.datetime.now()
    if today.day == config.snapshot_day_of_month:
        print(
            "uploading membership renewal snapshot to s3 since it is the first day of the month"
        )
        suffix = f'_{today.strftime("%Y-%m-%d")}.json'
        uploader.upload_multiple_json_to_s3(
            {
                config.s3_path_cum_payments_snapshot + suffix: artifacts["cum_payments"],
                config.s3_path_cum_counts_snapshot + suffix: artifacts["cum_counts"],
            },
            config.aws_bucket_name,
        )

    return report


if __name__ == "__main__":
    upload_new_membership_renewal_report(save_local=True)
