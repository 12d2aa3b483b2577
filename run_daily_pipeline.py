"""
Daily Membership Renewal Report Runner

Runs the membership renewal report once:
- MyTurn membership change report (last 60 days)
- Cumulative payments and renewal counts per membership type
- Saved to data/outputs/ and uploaded to s3 when AWS_BUCKET_NAME is set

Usage:
    python run_daily_pipeline.py

Or set up as cron job:
    0 6 * * * cd /path/to/project && source venv/bin/activate && python run_daily_pipeline.py
"""

from data_pipeline.pipeline_handler import upload_new_membership_renewal_report
from data_pipeline.fetch_myturn_membership_changes import MyTurnError
from data_pipeline.membership_renewal_aggregator import NoRecordsError
import datetime
import sys


def run_daily_pipeline():
    """Run the membership renewal report. Returns the process exit code."""
    print(f"\n{'='*80}")
    print(f"MEMBERSHIP RENEWAL REPORT - {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"{'='*80}\n")

    print("Fetching MyTurn membership changes and building cumulative series...")
    try:
        report = upload_new_membership_renewal_report(save_local=True)
    except (MyTurnError, NoRecordsError) as e:
        print(f"❌ Error building membership renewal report: {e}\n")
        return 1

    print(f"✅ Membership renewal report updated successfully ({len(report.cum_payments)} days)\n")

    print(f"{'='*80}")
    print("REPORT COMPLETE")
    print(f"{'='*80}\n")
    return 0


if __name__ == "__main__":
    sys.exit(run_daily_pipeline())
