# federation/dependencies.py
from datetime import date


def get_today() -> date:
    """
    The date every status calculation runs against.
    Routers depend on this (instead of calling date.today()) so tests can pin it.
    """
    return date.today()
