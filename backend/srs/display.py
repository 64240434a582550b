"""Presentation lookups for ratings, mastery levels and intervals."""

from backend.srs.card import MasteryLevel, Rating

MASTERY_LABELS = {
    MasteryLevel.NEW: "New",
    MasteryLevel.LEARNING: "Learning",
    MasteryLevel.YOUNG: "Young",
    MasteryLevel.MATURE: "Mature",
    MasteryLevel.MASTERED: "Mastered",
}

# Theme color tokens understood by the UI layer
MASTERY_COLORS = {
    MasteryLevel.NEW: "text-muted-foreground",
    MasteryLevel.LEARNING: "text-blue-500",
    MasteryLevel.YOUNG: "text-cyan-500",
    MasteryLevel.MATURE: "text-green-500",
    MasteryLevel.MASTERED: "text-yellow-500",
}

RATING_LABELS = {
    Rating.AGAIN: "Again",
    Rating.HARD: "Hard",
    Rating.GOOD: "Good",
    Rating.EASY: "Easy",
}


def get_mastery_label(level: MasteryLevel | str) -> str:
    return MASTERY_LABELS[MasteryLevel(level)]


def get_mastery_color(level: MasteryLevel | str) -> str:
    return MASTERY_COLORS[MasteryLevel(level)]


def get_rating_label(rating: Rating | str) -> str:
    return RATING_LABELS[Rating.parse(rating)]


def format_interval(days: int) -> str:
    """Compact interval string: days under a week, then weeks, then months."""
    if days < 7:
        return f"{days}d"
    if days < 30:
        return f"{round(days / 7)}w"
    return f"{round(days / 30)}mo"
