"""Monitoring module for cargo-loadplanner.

Provides plan statistics, axle loads, JSON/CSV export and Telegram
notifications.
"""

from .axles import (
    AxleLoad,
    AxleReport,
    calculate_axle_loads,
    calculate_jumbo_axle_loads,
    calculate_solo_axle_loads,
    calculate_trailer_axle_loads,
    format_axle_report,
    load_status,
)
from .metrics import (
    PlanMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from .telegram_notifier import (
    format_error,
    format_plan_summary,
    format_unpacked,
    send_telegram,
)

__all__ = [
    # Axles
    "AxleLoad",
    "AxleReport",
    "calculate_axle_loads",
    "calculate_trailer_axle_loads",
    "calculate_solo_axle_loads",
    "calculate_jumbo_axle_loads",
    "format_axle_report",
    "load_status",
    # Metrics
    "PlanMetrics",
    "export_to_csv",
    "export_to_json",
    "print_summary",
    # Telegram
    "send_telegram",
    "format_plan_summary",
    "format_unpacked",
    "format_error",
]
