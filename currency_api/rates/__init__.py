"""Rates blueprint: latest table, conversion and manual refresh."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Rates", __name__, description="Exchange rate and conversion endpoints")

from . import routes  # noqa: E402,F401
