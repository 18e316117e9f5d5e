"""ASGI entrypoint for the car-care back-office API."""

from carcare_backoffice.api.app import create_app
from carcare_backoffice.containers import build_container

app = create_app(build_container())
