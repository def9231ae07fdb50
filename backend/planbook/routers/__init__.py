# Routers package — Thin Controllers (SRP / DIP)
from planbook.routers import (
    time_settings,
    key_figures,
    planning_versions,
    planning_data,
    grid,
    alerts,
    history,
)

__all__ = [
    "time_settings",
    "key_figures",
    "planning_versions",
    "planning_data",
    "grid",
    "alerts",
    "history",
]
