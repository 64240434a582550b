"""Tests for the SM-2 scheduling algorithm, card model and display helpers."""

import json
import random
from datetime import datetime, timedelta, timezone

import pytest

from backend.srs.card import DifficultyTag, MasteryLevel, Rating, ReviewCard
from backend.srs.display import (
    format_interval,
    get_mastery_color,
    get_mastery_label,
    get_rating_label,
)
from backend.srs.errors import InvalidArgumentError
from backend.srs.sm2 import MIN_EASE_FACTOR, SM2, mastery_level, round_half_up

NOW = datetime(2026, 1, 15, 9, 30)


def _new_card(**overrides: object) -> ReviewCard:
    card = ReviewCard.new("q-1", "system-design", "medium", now=NOW)
    return card.copy(**overrides) if overrides else card


# --- SM-2 Algorithm ---


class TestSM2:
    def setup_method(self) -> None:
        self.sm2 = SM2()

    def _review_chain(self, card: ReviewCard, ratings: list[str]) -> ReviewCard:
        for rating in ratings:
            card = self.sm2.review(card, rating, now=NOW).card
        return card

    def test_first_good_review(self) -> None:
        card = self.sm2.review(_new_card(), "good", now=NOW).card
        assert card.repetitions == 1
        assert card.interval_days == 1
        assert card.ease_factor == 2.5
        assert card.total_reviews == 1
        assert card.mastery_level == MasteryLevel.LEARNING
        assert card.due_at == NOW + timedelta(days=1)
        assert card.last_reviewed_at == NOW

    def test_second_good_review(self) -> None:
        card = self._review_chain(_new_card(), ["good", "good"])
        assert card.repetitions == 2
        assert card.interval_days == 3
        assert card.ease_factor == 2.5
        assert card.mastery_level == MasteryLevel.YOUNG

    def test_third_good_review_grows_multiplicatively(self) -> None:
        card = self._review_chain(_new_card(), ["good", "good", "good"])
        assert card.repetitions == 3
        assert card.interval_days == 8  # round(3 * 2.5 * 1.0) = round(7.5)
        assert card.mastery_level == MasteryLevel.MATURE

    def test_again_after_mature_relearns(self) -> None:
        card = self._review_chain(_new_card(), ["good", "good", "good"])
        lapsed = self.sm2.review(card, "again", now=NOW).card
        assert lapsed.repetitions == 0
        assert lapsed.interval_days == 1
        assert lapsed.ease_factor == pytest.approx(2.3)
        assert lapsed.lapses == card.lapses + 1
        assert lapsed.mastery_level == MasteryLevel.LEARNING
        assert lapsed.due_at == NOW + timedelta(days=1)

    def test_hard_at_ease_floor_still_grows_interval(self) -> None:
        card = _new_card(repetitions=2, interval_days=10, ease_factor=1.3)
        result = self.sm2.review(card, "hard", now=NOW)
        assert result.card.ease_factor == MIN_EASE_FACTOR
        # round(10 * 1.3 * 0.8) = 10, raised to previous + 1
        assert result.card.interval_days == 11
        assert result.previous_interval_days == 10

    def test_graduating_steps_easy_skips_ahead(self) -> None:
        first = self.sm2.review(_new_card(), "easy", now=NOW).card
        assert first.interval_days == 2
        assert first.ease_factor == pytest.approx(2.65)
        second = self.sm2.review(first, "easy", now=NOW).card
        assert second.interval_days == 4

    def test_graduating_steps_hard(self) -> None:
        first = self.sm2.review(_new_card(), "hard", now=NOW).card
        assert first.interval_days == 1
        assert first.ease_factor == pytest.approx(2.35)
        second = self.sm2.review(first, "hard", now=NOW).card
        assert second.interval_days == 3
        assert second.repetitions == 2

    def test_after_lapse_graduates_again_from_first_step(self) -> None:
        card = self._review_chain(_new_card(), ["good", "good", "good", "again", "good"])
        assert card.repetitions == 1
        assert card.interval_days == 1

    def test_easy_multiplier(self) -> None:
        card = _new_card(repetitions=3, interval_days=10, ease_factor=2.0)
        result = self.sm2.review(card, Rating.EASY, now=NOW)
        assert result.card.ease_factor == pytest.approx(2.15)
        assert result.card.interval_days == 28  # round(10 * 2.15 * 1.3) = round(27.95)

    def test_mastered_at_21_days(self) -> None:
        card = _new_card(repetitions=3, interval_days=20, total_reviews=3)
        result = self.sm2.review(card, "good", now=NOW)
        assert result.card.interval_days == 50
        assert result.card.mastery_level == MasteryLevel.MASTERED

    def test_review_with_aware_time_stores_naive_utc(self) -> None:
        aware = datetime(2026, 1, 15, 11, 30, tzinfo=timezone(timedelta(hours=2)))
        card = self.sm2.review(_new_card(), "good", now=aware).card
        assert card.last_reviewed_at == NOW
        assert card.due_at == NOW + timedelta(days=1)
        assert card.due_at.tzinfo is None

    def test_review_does_not_modify_input(self) -> None:
        card = _new_card()
        self.sm2.review(card, "easy", now=NOW)
        assert card.repetitions == 0
        assert card.total_reviews == 0
        assert card.ease_factor == 2.5

    def test_preview_matches_review(self) -> None:
        card = self._review_chain(_new_card(), ["good", "hard", "easy"])
        for rating in Rating:
            preview = self.sm2.preview_interval(card, rating)
            assert preview == self.sm2.review(card, rating, now=NOW).card.interval_days

    def test_difficulty_tag_does_not_affect_schedule(self) -> None:
        ratings = ["good", "easy", "hard", "again", "good", "good"]
        low = self._review_chain(_new_card(difficulty_tag=DifficultyTag.LOW), ratings)
        high = self._review_chain(_new_card(difficulty_tag=DifficultyTag.HIGH), ratings)
        assert (low.interval_days, low.ease_factor, low.repetitions) == (
            high.interval_days,
            high.ease_factor,
            high.repetitions,
        )

    def test_invalid_rating_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            self.sm2.review(_new_card(), "perfect", now=NOW)
        with pytest.raises(ValueError):
            self.sm2.preview_interval(_new_card(), 3)  # type: ignore[arg-type]

    # --- Invariants over random histories ---

    def test_random_histories_hold_invariants(self) -> None:
        rng = random.Random(1234)
        ratings = list(Rating)
        for _ in range(50):
            card = _new_card()
            for _ in range(40):
                rating = rng.choice(ratings)
                before = card
                card = self.sm2.review(card, rating, now=NOW).card

                assert card.ease_factor >= MIN_EASE_FACTOR
                assert card.total_reviews == before.total_reviews + 1
                assert card.lapses >= before.lapses
                assert isinstance(card.interval_days, int)
                assert card.interval_days >= 1
                assert (card.repetitions == 0) == (rating is Rating.AGAIN)
                if rating is not Rating.AGAIN and before.repetitions >= 2:
                    assert card.interval_days > before.interval_days


class TestRounding:
    def test_round_half_up(self) -> None:
        assert round_half_up(7.5) == 8
        assert round_half_up(2.5) == 3
        assert round_half_up(10.4) == 10
        assert round_half_up(0.49) == 0

    def test_mastery_buckets(self) -> None:
        assert mastery_level(0, 0, 0) == MasteryLevel.NEW
        assert mastery_level(0, 1, 4) == MasteryLevel.LEARNING
        assert mastery_level(1, 1, 1) == MasteryLevel.LEARNING
        assert mastery_level(2, 3, 2) == MasteryLevel.YOUNG
        assert mastery_level(3, 20, 3) == MasteryLevel.MATURE
        assert mastery_level(3, 21, 3) == MasteryLevel.MASTERED


# --- Card model ---


class TestReviewCard:
    def test_new_card_defaults(self) -> None:
        card = _new_card()
        assert card.ease_factor == 2.5
        assert card.interval_days == 0
        assert card.repetitions == 0
        assert card.due_at == NOW
        assert card.created_at == NOW
        assert card.last_reviewed_at is None
        assert card.mastery_level == MasteryLevel.NEW
        assert card.difficulty_tag == DifficultyTag.MEDIUM

    def test_new_card_requires_item_id(self) -> None:
        with pytest.raises(InvalidArgumentError):
            ReviewCard.new("", "system-design", "medium")

    def test_unknown_difficulty_tag_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            ReviewCard.new("q-1", "system-design", "extreme")

    def test_rating_parse_is_exact(self) -> None:
        assert Rating.parse("good") is Rating.GOOD
        assert Rating.parse(Rating.EASY) is Rating.EASY
        for value in [" good ", "GOOD", "Easy", ""]:
            with pytest.raises(InvalidArgumentError):
                Rating.parse(value)

    def test_difficulty_parse_is_exact(self) -> None:
        assert DifficultyTag.parse("high") is DifficultyTag.HIGH
        with pytest.raises(InvalidArgumentError):
            DifficultyTag.parse("High")

    def test_json_keeps_int_and_float_types(self) -> None:
        card = SM2().review(_new_card(ease_factor=2.0), "good", now=NOW).card
        data = json.loads(card.to_json())
        assert isinstance(data["easeFactor"], float)
        for key in ("intervalDays", "repetitions", "totalReviews", "lapses"):
            assert isinstance(data[key], int)
        assert data["lastReviewedAt"] == NOW.isoformat()
        assert ReviewCard.from_json(card.to_json()) == card

    def test_from_json_rejects_wrong_types(self) -> None:
        data = json.loads(_new_card().to_json())
        data["repetitions"] = "2"
        with pytest.raises(TypeError):
            ReviewCard.from_json(json.dumps(data).encode())

    def test_from_json_rejects_negative_counts(self) -> None:
        data = json.loads(_new_card().to_json())
        data["lapses"] = -1
        with pytest.raises(ValueError):
            ReviewCard.from_json(json.dumps(data).encode())

    def test_from_json_rejects_ease_below_floor(self) -> None:
        data = json.loads(_new_card().to_json())
        data["easeFactor"] = 1.1
        with pytest.raises(ValueError):
            ReviewCard.from_json(json.dumps(data).encode())

    def test_from_json_rejects_non_string_last_reviewed(self) -> None:
        data = json.loads(_new_card().to_json())
        data["lastReviewedAt"] = 1767225600
        with pytest.raises(TypeError):
            ReviewCard.from_json(json.dumps(data).encode())

    def test_from_json_converts_offset_timestamps_to_naive_utc(self) -> None:
        data = json.loads(_new_card().to_json())
        data["dueAt"] = "2026-01-01T00:00:00Z"
        data["createdAt"] = "2026-01-01T02:00:00+02:00"
        data["lastReviewedAt"] = "2025-12-31T19:00:00-05:00"
        card = ReviewCard.from_json(json.dumps(data).encode())
        assert card.due_at == datetime(2026, 1, 1)
        assert card.created_at == datetime(2026, 1, 1)
        assert card.last_reviewed_at == datetime(2026, 1, 1)
        assert card.due_at.tzinfo is None


# --- Display helpers ---


class TestDisplay:
    def test_mastery_labels_and_colors(self) -> None:
        assert get_mastery_label(MasteryLevel.NEW) == "New"
        assert get_mastery_label("mastered") == "Mastered"
        assert get_mastery_color(MasteryLevel.NEW) == "text-muted-foreground"
        assert get_mastery_color(MasteryLevel.MASTERED) == "text-yellow-500"
        assert len({get_mastery_color(level) for level in MasteryLevel}) == len(MasteryLevel)

    def test_rating_labels(self) -> None:
        assert get_rating_label("again") == "Again"
        assert get_rating_label(Rating.EASY) == "Easy"

    def test_format_interval(self) -> None:
        assert format_interval(1) == "1d"
        assert format_interval(6) == "6d"
        assert format_interval(8) == "1w"
        assert format_interval(14) == "2w"
        assert format_interval(90) == "3mo"
