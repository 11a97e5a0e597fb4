"""ASGI entrypoint for the artwork sessions admin API."""

from artwork_sessions.api.app import create_app
from artwork_sessions.containers import build_container

app = create_app(build_container())
