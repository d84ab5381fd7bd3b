"""积分计算单元测试

测试内容：
1. 各分档边界
2. 宽限窗口可配置
3. 积分取值集合与 is_early 的关系
"""

from datetime import UTC, datetime, timedelta

import pytest
from taskportal.core.scoring import (
    LATE_POINTS,
    ON_TIME_POINTS,
    POSSIBLE_POINTS,
    compute_points,
    completion_hours,
)

DUE = datetime(2024, 3, 10, 17, 0, tzinfo=UTC)


class TestComputePoints:
    """分档计算"""

    @pytest.mark.parametrize(
        "hours_before_due,points,is_early",
        [
            (48, 150, True),
            (24.01, 150, True),
            (24, 100, True),
            (12.5, 100, True),
            (12, 75, True),
            (0.01, 75, True),
            (0, 50, False),
            (-0.5, 50, False),
            (-0.99, 50, False),
            (-1, 0, False),
            (-72, 0, False),
        ],
    )
    def test_bands(self, hours_before_due: float, points: int, is_early: bool):
        completed_at = DUE - timedelta(hours=hours_before_due)
        score = compute_points(DUE, completed_at)
        assert score.points == points
        assert score.is_early is is_early

    def test_completed_two_days_early(self):
        """截止前 2 天完成 -> 150 分，提前"""
        score = compute_points(DUE, DUE - timedelta(days=2))
        assert score == (150, True)

    def test_completed_exactly_at_due(self):
        """恰好到期完成 -> 50 分，准时"""
        assert compute_points(DUE, DUE) == (ON_TIME_POINTS, False)

    def test_completed_half_hour_late(self):
        """逾期 30 分钟仍在宽限内 -> 50 分"""
        assert compute_points(DUE, DUE + timedelta(minutes=30)) == (50, False)

    def test_completed_three_days_late(self):
        """逾期 3 天 -> 0 分"""
        assert compute_points(DUE, DUE + timedelta(days=3)) == (LATE_POINTS, False)

    @pytest.mark.parametrize(
        "completed_at,points,is_early",
        [
            (datetime(2024, 3, 9, 10, 0, tzinfo=UTC), 150, True),
            (datetime(2024, 3, 10, 11, 30, tzinfo=UTC), 75, True),
            (datetime(2024, 3, 11, 12, 0, tzinfo=UTC), 0, False),
        ],
        ids=["26h-early", "half-hour-early", "24h-late"],
    )
    def test_noon_deadline_scenarios(self, completed_at: datetime, points: int, is_early: bool):
        due = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)
        assert compute_points(due, completed_at) == (points, is_early)

    def test_grace_window_is_configurable(self):
        late = DUE + timedelta(hours=3)
        assert compute_points(DUE, late, grace_window_hours=1).points == 0
        assert compute_points(DUE, late, grace_window_hours=4).points == 50

    def test_zero_grace_window(self):
        assert compute_points(DUE, DUE, grace_window_hours=0).points == 0

    def test_points_always_in_possible_set(self):
        """任意完成时间的积分属于 {0, 50, 75, 100, 150}，且 is_early 当且仅当 >= 75"""
        assert POSSIBLE_POINTS == {0, 50, 75, 100, 150}
        for minutes in range(-5000, 5000, 37):
            score = compute_points(DUE, DUE + timedelta(minutes=minutes))
            assert score.points in POSSIBLE_POINTS
            assert score.is_early == (score.points >= 75)


class TestCompletionHours:
    def test_fractional_hours(self):
        start = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
        assert completion_hours(start, start + timedelta(minutes=90)) == 1.5

    def test_rounded_to_two_decimals(self):
        start = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
        assert completion_hours(start, start + timedelta(minutes=10)) == 0.17
