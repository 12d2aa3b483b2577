from dash import Dash
from dashboard.dashboard import create_dashboard
from data_pipeline import config

# Initialize the Dash app
app = Dash(__name__, title=config.dashboard_title)

# Create the dashboard layout and callbacks
create_dashboard(app)

# Expose the Flask server for Gunicorn
server = app.server

if __name__ == "__main__":
    app.run(debug=True)
