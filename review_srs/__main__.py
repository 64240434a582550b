"""CLI interface for the review scheduler.

Usage:
    python -m review_srs add ITEM CATEGORY       Put an item into the review queue
    python -m review_srs rate ITEM RATING        Record again/hard/good/easy for an item
    python -m review_srs due [--within DAYS]     List cards due for review
    python -m review_srs preview ITEM            Show what each rating would schedule
    python -m review_srs stats                   Show review statistics
"""

import argparse
import logging
import sys

from backend.config import utcnow
from backend.srs.card import DifficultyTag, ReviewCard
from backend.srs.display import format_interval, get_mastery_label, get_rating_label
from backend.srs.errors import InvalidArgumentError
from backend.srs.scheduler import ReviewScheduler


def _describe(card: ReviewCard) -> str:
    return (
        f"  {card.item_id:<24} {card.category:<16} "
        f"{get_mastery_label(card.mastery_level):<9} "
        f"due {card.due_at:%Y-%m-%d %H:%M}  "
        f"interval {card.interval_days}d  ease {card.ease_factor:.2f}"
    )


def cmd_add(scheduler: ReviewScheduler, args: argparse.Namespace) -> None:
    """Add an item to the review queue."""
    if scheduler.is_in_review_queue(args.item_id):
        print(f"  '{args.item_id}' is already in the review queue.")
        return
    card = scheduler.add_to_review_queue(args.item_id, args.category, args.difficulty)
    print("  Added (card ready for review):")
    print(_describe(card))


def cmd_rate(scheduler: ReviewScheduler, args: argparse.Namespace) -> None:
    """Record a recall rating for an item."""
    card = scheduler.record_review(args.item_id, args.category, args.difficulty, args.rating)
    print(f"  {get_rating_label(args.rating)}: next review in {format_interval(card.interval_days)}")
    print(_describe(card))


def cmd_due(scheduler: ReviewScheduler, args: argparse.Namespace) -> None:
    """List due cards."""
    if args.within:
        cards = scheduler.cards_due_within(args.within)
        heading = f"due within {args.within} days"
    else:
        cards = scheduler.list_due_cards()
        heading = "due now"

    if not cards:
        print("\n  No cards due for review. You're all caught up!")
        return

    print(f"\n  {len(cards)} cards {heading}\n")
    for card in cards:
        print(_describe(card))


def cmd_preview(scheduler: ReviewScheduler, args: argparse.Namespace) -> None:
    """Show the interval each rating would schedule."""
    card = scheduler.store.find(args.item_id)
    if card is None:
        print(f"  '{args.item_id}' is not in the review queue.")
        return
    print(_describe(card))
    for rating, label in scheduler.preview_labels(card).items():
        print(f"    {get_rating_label(rating):<6} -> {label}")


def cmd_stats(scheduler: ReviewScheduler, args: argparse.Namespace) -> None:
    """Show review statistics."""
    stats = scheduler.stats(utcnow())
    print("\n  Review Statistics")
    print(f"  {'Total cards:':<20} {stats.total_cards}")
    print(f"  {'Due now:':<20} {stats.due_today}")
    print(f"  {'Due tomorrow:':<20} {stats.due_tomorrow}")
    print(f"  {'Due this week:':<20} {stats.due_this_week}")
    print(f"  {'New (unseen):':<20} {stats.new_cards}")
    print(f"  {'Learning:':<20} {stats.learning}")
    print(f"  {'Mastered:':<20} {stats.mastered}")
    print(f"  {'Review streak:':<20} {stats.review_streak} days")
    print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="review_srs",
        description="Spaced repetition review scheduler",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL of the card store")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    difficulties = [d.value for d in DifficultyTag]

    # add
    add_parser = subparsers.add_parser("add", help="Put an item into the review queue")
    add_parser.add_argument("item_id", help="Stable item identifier")
    add_parser.add_argument("category", help="Grouping tag, e.g. the item's topic")
    add_parser.add_argument("-d", "--difficulty", default="medium", choices=difficulties)

    # rate
    rate_parser = subparsers.add_parser("rate", help="Record a recall rating")
    rate_parser.add_argument("item_id", help="Stable item identifier")
    rate_parser.add_argument("rating", help="again, hard, good or easy")
    rate_parser.add_argument("-c", "--category", default="general", help="Category for new cards")
    rate_parser.add_argument("-d", "--difficulty", default="medium", choices=difficulties)

    # due
    due_parser = subparsers.add_parser("due", help="List cards due for review")
    due_parser.add_argument("--within", type=int, default=0, help="Include cards due in N days")

    # preview
    preview_parser = subparsers.add_parser("preview", help="Show what each rating would schedule")
    preview_parser.add_argument("item_id", help="Stable item identifier")

    # stats
    subparsers.add_parser("stats", help="Show review statistics")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the review scheduler CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return 0

    cmd_map = {
        "add": cmd_add,
        "rate": cmd_rate,
        "due": cmd_due,
        "preview": cmd_preview,
        "stats": cmd_stats,
    }

    scheduler = ReviewScheduler.open(args.database_url)
    try:
        cmd_map[args.command](scheduler, args)
    except InvalidArgumentError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
