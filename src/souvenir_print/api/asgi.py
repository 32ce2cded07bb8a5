"""ASGI entrypoint for the souvenir print API."""

from souvenir_print.api.app import create_app
from souvenir_print.containers import build_container

app = create_app(build_container())
