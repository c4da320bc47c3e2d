"""Tests for badge evaluation and streaks."""

from datetime import date

import pytest

from app.posture_engine.modules import (
    BADGE_DEFINITIONS, BadgeCheckContext, BadgeId, UserBadge, calculate_streak,
    check_badge_condition, get_badge_definition, get_earned_badge_count,
    get_initial_badges, update_badges,
)

NOW = "2026-10-17T09:00:00+00:00"
LATER = "2026-10-18T09:00:00+00:00"


@pytest.fixture
def scenario_context():
    return BadgeCheckContext(
        total_analyses=1,
        current_streak=3,
        latest_score=80,
        previous_score=70,
        head_forward_score=80,
        shoulder_balance_score=60,
        overall_score=82,
    )


class TestBadgeConditions:

    def test_scenario(self, scenario_context):
        update = update_badges(get_initial_badges(), scenario_context, now=NOW)
        assert update.newly_earned == ["first_analysis", "streak_3", "first_improvement", "turtle_neck_escape"]

        earned = {b.id: b.earned_at for b in update.badges}
        assert earned["shoulder_balance"] is None
        assert earned["perfect_posture"] is None
        assert earned["first_analysis"] == NOW

    def test_empty_history_earns_nothing(self):
        update = update_badges([], BadgeCheckContext(), now=NOW)
        assert update.newly_earned == []
        assert len(update.badges) == len(BADGE_DEFINITIONS)

    def test_improvement_needs_previous_score(self):
        assert not check_badge_condition("first_improvement", BadgeCheckContext(latest_score=90))
        assert not check_badge_condition("first_improvement",
                                         BadgeCheckContext(latest_score=74, previous_score=70))
        assert check_badge_condition("first_improvement",
                                     BadgeCheckContext(latest_score=75, previous_score=70))

    @pytest.mark.parametrize("badge_id,context,expected", [
        ("streak_7", BadgeCheckContext(current_streak=7), True),
        ("streak_7", BadgeCheckContext(current_streak=6), False),
        ("streak_30", BadgeCheckContext(current_streak=30), True),
        ("shoulder_balance", BadgeCheckContext(shoulder_balance_score=75), True),
        ("perfect_posture", BadgeCheckContext(overall_score=90), True),
        ("perfect_posture", BadgeCheckContext(overall_score=89.9), False),
        ("no_such_badge", BadgeCheckContext(total_analyses=100), False),
    ])
    def test_thresholds(self, badge_id, context, expected):
        assert check_badge_condition(badge_id, context) is expected


class TestBadgeMonotonicity:

    def test_earned_badges_are_kept(self, scenario_context):
        first = update_badges(get_initial_badges(), scenario_context, now=NOW)
        second = update_badges(first.badges, BadgeCheckContext(), now=LATER)

        assert second.newly_earned == []
        before = {b.id: b.earned_at for b in first.badges}
        after = {b.id: b.earned_at for b in second.badges}
        assert after == before

    def test_idempotent(self, scenario_context):
        first = update_badges(get_initial_badges(), scenario_context, now=NOW)
        second = update_badges(first.badges, scenario_context, now=LATER)
        assert second.newly_earned == []
        assert second.badges == first.badges

    def test_partial_and_unknown_input(self):
        current = [UserBadge("streak_3", NOW), UserBadge("retired_badge", NOW)]
        update = update_badges(current, BadgeCheckContext(), now=LATER)

        assert [b.id for b in update.badges] == [d.id.value for d in BADGE_DEFINITIONS]
        assert get_earned_badge_count(update.badges) == 1

    def test_output_follows_catalog_order(self, scenario_context):
        shuffled = list(reversed(get_initial_badges()))
        update = update_badges(shuffled, scenario_context, now=NOW)
        assert [b.id for b in update.badges] == [d.id.value for d in BADGE_DEFINITIONS]

    def test_default_timestamp(self, scenario_context):
        update = update_badges([], scenario_context)
        assert all(b.earned_at for b in update.badges if b.id in update.newly_earned)


class TestBadgeCatalog:

    def test_lookup(self):
        assert get_badge_definition("streak_30").id == BadgeId.STREAK_30
        assert get_badge_definition("unknown") is None

    def test_initial_badges_unearned(self):
        badges = get_initial_badges()
        assert len(badges) == 8
        assert get_earned_badge_count(badges) == 0


class TestStreak:

    TODAY = date(2026, 10, 17)

    def test_empty(self):
        summary = calculate_streak([], today=self.TODAY)
        assert (summary.current, summary.best) == (0, 0)

    def test_consecutive_days_ending_today(self):
        dates = ["2026-10-17", "2026-10-16", "2026-10-15"]
        summary = calculate_streak(dates, today=self.TODAY)
        assert (summary.current, summary.best) == (3, 3)

    def test_streak_ending_yesterday_survives(self):
        dates = [date(2026, 10, 16), date(2026, 10, 15)]
        assert calculate_streak(dates, today=self.TODAY).current == 2

    def test_broken_streak(self):
        dates = ["2026-10-14", "2026-10-13", "2026-10-12", "2026-10-11"]
        summary = calculate_streak(dates, today=self.TODAY)
        assert summary.current == 0
        assert summary.best == 4

    def test_duplicates_and_timestamps(self):
        dates = [
            "2026-10-17T08:00:00+00:00",
            "2026-10-17T19:30:00+00:00",
            "2026-10-16T07:00:00+00:00",
            "2026-10-10",
        ]
        summary = calculate_streak(dates, today=self.TODAY)
        assert (summary.current, summary.best) == (2, 2)
