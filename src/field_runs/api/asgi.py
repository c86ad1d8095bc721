"""ASGI entrypoint for the field run API."""

from field_runs.api.app import create_app
from field_runs.containers import build_container

app = create_app(build_container())
