"""ASGI entrypoint for the burn tracker API."""

from burn_tracker.api.app import create_app
from burn_tracker.containers import build_container

app = create_app(build_container())
