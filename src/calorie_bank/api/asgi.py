"""ASGI entrypoint for the calorie bank API."""

from calorie_bank.api.app import create_app
from calorie_bank.containers import build_container

app = create_app(build_container())
