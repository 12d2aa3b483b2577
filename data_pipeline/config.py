import os
from dotenv import load_dotenv

load_dotenv(".env")

# data_pipeline configurations
myturn_username = os.getenv("MYTURN_USERNAME")
myturn_password = os.getenv("MYTURN_PASSWORD")
myturn_host = os.getenv("MYTURN_HOST", "capitolhill.myturn.com")
myturn_timezone = os.getenv("MYTURN_TIMEZONE", "America/Los_Angeles")
aws_access_key_id = os.getenv("AWS_ACCESS_KEY_ID")
aws_secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY")
aws_bucket_name = os.getenv("AWS_BUCKET_NAME")
report_source = os.getenv("REPORT_SOURCE", "local")

lookback_days = 60
request_timeout = 30

json_path_cum_payments = "data/outputs/cum_payments.json"
json_path_cum_counts = "data/outputs/cum_counts.json"
json_path_today = "data/outputs/today.json"
s3_path_cum_payments = "myturn/cum_payments.json"
s3_path_cum_counts = "myturn/cum_counts.json"
s3_path_today = "myturn/today.json"
s3_path_cum_payments_snapshot = "myturn/snapshots/cum_payments"
s3_path_cum_counts_snapshot = "myturn/snapshots/cum_counts"
snapshot_day_of_month = 1

# Dashboard
dashboard_title = "CHTL Membership Renewals"
metric_payments = "Cumulative Payments ($)"
metric_counts = "Cumulative Renewal Count"
membership_type_colors = {
    "Flexible": "#0074D9",  # Strong blue
    "Standard (Annual)": "#2ECC40",  # Vivid green
    "Standard (Monthly)": "#FF4136",  # Bright red
    "Sustaining (Annual)": "#B10DC9",  # Deep purple
    "regular": "#FF851B",  # Orange
}
total_line_color = "#222222"
