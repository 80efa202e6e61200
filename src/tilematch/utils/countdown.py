from datetime import datetime


def format_countdown(reset_at: datetime, now: datetime) -> str:
    """Render the time left until reset_at as MM:SS ('00:00' once elapsed)."""
    remaining = int((reset_at - now).total_seconds())
    if remaining <= 0:
        return '00:00'
    minutes = remaining // 60
    seconds = remaining % 60
    return f"{minutes:02d}:{seconds:02d}"
