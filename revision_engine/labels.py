"""Display helpers for due dates and priorities (French UI text)"""

from datetime import date


def format_due_date(due: date, today: date) -> str:
    diff_days = (due - today).days
    if diff_days < 0:
        return f"En retard ({abs(diff_days)} jours)"
    elif diff_days == 0:
        return "Aujourd'hui"
    elif diff_days == 1:
        return "Demain"
    return f"Dans {diff_days} jours"


def priority_level(priority: int) -> str:
    if priority >= 80:
        return "high"
    if priority >= 40:
        return "medium"
    if priority >= 20:
        return "low"
    return "minimal"
