from dash import html, dcc, Input, Output
import plotly.graph_objects as go
import plotly.io as pio
from data_pipeline import config
from data_pipeline.membership_renewal_aggregator import TRACKED_MEMBERSHIP_TYPES
from shared import data_loader

pio.templates.default = "plotly"  # start off with plotly template as a clean slate


def load_data():
    df_payments = data_loader.load_cumulative_payments()
    df_counts = data_loader.load_cumulative_counts()
    generated_at = data_loader.load_generated_at()
    return df_payments, df_counts, generated_at


def build_renewal_figure(df, metric, selected_types, stack):
    """
    Area chart of the cumulative series for the selected membership types.

    Stacked areas share one stack group; unstacked areas each fill to zero.
    The hover tooltip adds the sum of the visible types at each date.
    """
    fig = go.Figure()

    # Colour order is fixed so a type keeps its colour when others are hidden
    visible_types = [
        membership_type
        for membership_type in config.membership_type_colors
        if membership_type in selected_types and membership_type in df.columns
    ]
    for membership_type in visible_types:
        color = config.membership_type_colors[membership_type]
        fig.add_trace(
            go.Scatter(
                x=df["date"],
                y=df[membership_type],
                mode="lines",
                name=membership_type,
                stackgroup="one" if stack else None,
                fill=None if stack else "tozeroy",
                line=dict(color=color, shape="spline"),
            )
        )

    if visible_types:
        total = df[visible_types].sum(axis=1)
        total_format = "$%{y:,.2f}" if metric == config.metric_payments else "%{y:,}"
        # Tooltip only: drawn with no line on a hidden axis so it never sets the y range
        fig.add_trace(
            go.Scatter(
                x=df["date"],
                y=total,
                mode="lines",
                name="Total",
                yaxis="y2",
                showlegend=False,
                line=dict(color=config.total_line_color, width=0),
                hovertemplate=f"<b>Total: {total_format}</b><extra></extra>",
            )
        )

    fig.update_layout(
        title=metric,
        showlegend=True,
        height=400,
        xaxis_title="Date",
        yaxis_title=metric,
        yaxis2=dict(overlaying="y", visible=False),
        hovermode="x unified",
    )
    fig.update_xaxes(hoverformat="Date ≤ %m/%d/%Y")
    if metric == config.metric_payments:
        fig.update_yaxes(tickprefix="$", tickformat=",")
    else:
        fig.update_yaxes(tickformat=",")
    return fig


def create_dashboard(app, df_payments=None, df_counts=None, generated_at=None):

    if df_payments is None or df_counts is None or generated_at is None:
        df_payments, df_counts, generated_at = load_data()

    data = {
        config.metric_payments: df_payments,
        config.metric_counts: df_counts,
    }

    app.layout = html.Div(
        [
            html.H1(
                children=config.dashboard_title,
                style={"color": "#213B3F", "marginTop": "30px"},
            ),
            html.P(
                html.I(f"Data as of {generated_at.strftime('%m/%d/%Y, %I:%M:%S %p')}")
            ),
            dcc.Checklist(
                id="stack-toggle",
                options=[{"label": "Stack Data", "value": "stack"}],
                value=["stack"],
                inline=True,
                style={"marginBottom": "20px"},
            ),
            html.H4("Visualization"),
            dcc.RadioItems(
                id="metric-toggle",
                options=[{"label": metric, "value": metric} for metric in data],
                value=config.metric_payments,
                inline=True,
                style={"marginBottom": "20px"},
            ),
            html.H4("Visible Membership Types"),
            dcc.Checklist(
                id="membership-type-toggle",
                options=[
                    {"label": membership_type, "value": membership_type}
                    for membership_type in TRACKED_MEMBERSHIP_TYPES
                ],
                value=list(TRACKED_MEMBERSHIP_TYPES),
                inline=True,
                style={"marginBottom": "40px"},
            ),
            dcc.Graph(id="membership-renewals-chart"),
        ],
        className="main",
    )

    # Callback for the membership renewals chart
    @app.callback(
        Output("membership-renewals-chart", "figure"),
        [
            Input("metric-toggle", "value"),
            Input("membership-type-toggle", "value"),
            Input("stack-toggle", "value"),
        ],
    )
    def update_membership_renewals_chart(selected_metric, selected_types, stack_toggle):
        return build_renewal_figure(
            data[selected_metric],
            selected_metric,
            selected_types or [],
            "stack" in (stack_toggle or []),
        )
