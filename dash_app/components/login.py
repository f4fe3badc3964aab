"""Login view component: username/password form with an inline error slot."""
from dash import html
import dash_mantine_components as dmc


def make_login_view():
    """Return the login card, hidden until routing shows it."""
    return html.Div(
        id="login-view",
        className="login-view",
        style={"display": "none"},
        children=[
            dmc.Paper(
                className="login-card",
                shadow="sm",
                p="xl",
                withBorder=True,
                children=dmc.Stack(
                    gap="md",
                    children=[
                        dmc.Text("Client Satisfaction Feedback", fw=700, size="lg"),
                        dmc.Text("Sign in to view the dashboard", size="sm", c="dimmed"),
                        html.Div(id="login-error"),
                        dmc.TextInput(
                            id="login-username",
                            label="Username",
                            placeholder="Enter your username",
                            required=True,
                        ),
                        dmc.PasswordInput(
                            id="login-password",
                            label="Password",
                            placeholder="Enter your password",
                            required=True,
                        ),
                        dmc.Button("Sign in", id="login-submit", n_clicks=0, fullWidth=True),
                    ],
                ),
            ),
        ],
    )
