from .misc import now_iso, format_time, format_time_axis, parse_target_pace

__all__ = ["now_iso", "format_time", "format_time_axis", "parse_target_pace"]
