"""ASGI entrypoint for the mission photos API."""

from mission_photos.api.app import create_app
from mission_photos.containers import build_container

app = create_app(build_container())
