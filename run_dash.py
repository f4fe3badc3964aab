"""Entry point for the Dash application."""
import logging

from core.logging_config import setup_logging

setup_logging(level=logging.INFO)

from dash_app.app import app

if __name__ == "__main__":
    app.run(debug=True, port=8050)
