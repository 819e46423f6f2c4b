import re
from datetime import datetime



# Simply returns the current local time as an ISO8601 string with timezone offset.
def now_iso():
    return datetime.now().astimezone().isoformat()


# Formats elapsed milliseconds as MM:SS.CC, or H:MM:SS.CC once an hour has passed. Centiseconds are truncated, never
# rounded, so a display never shows a time the clock hasn't reached yet. Anything that isn't a number renders as zero.
def format_time(ms):
    if isinstance(ms, bool) or not isinstance(ms, (int, float)) or ms != ms:
        return "00:00.00"
    ms = max(0, int(ms))
    centis = (ms % 1000) // 10
    seconds = (ms // 1000) % 60
    minutes = (ms // 60000) % 60
    hours = ms // 3600000
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}.{centis:02d}"
    return f"{minutes:02d}:{seconds:02d}.{centis:02d}"


# Shorter M:SS format, only used for chart axis labels.
def format_time_axis(ms):
    total_sec = max(0, int(ms)) // 1000
    minutes, sec = divmod(total_sec, 60)
    return f"{minutes}:{sec:02d}"


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Reads the integer a segment starts with: leading whitespace skipped, an optional sign, then digits up to the first
# non-digit ("1x" is 1, " -2" is -2). No leading integer at all counts as 0.
def _leading_int(text):
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0

# Parses a target pace string like "01:30" into milliseconds. Bad segments count as 0, and anything that isn't
# exactly two segments is 0 overall (which means "no target"). A signed minute applies only to the minutes, so
# "-1:30" is -30000; any result <= 0 also means "no target".
def parse_target_pace(text):
    if not text:
        return 0
    parts = text.split(":")
    if len(parts) != 2:
        return 0
    return _leading_int(parts[0]) * 60000 + _leading_int(parts[1]) * 1000
