"""运行统计模块测试"""

import numpy as np
import pytest

from core.errors import InvalidArmIndex
from core.stats import ArmStats, init_stats, numeric_reward, record


class TestStats:
    """init_stats / record 测试"""

    def test_init_all_zero(self):
        stats = init_stats(3)
        assert len(stats) == 3
        assert all(s.attempts == 0 and s.sum_of_rewards == 0 for s in stats)
        assert stats[0].average is None

    def test_init_returns_independent_entries(self):
        """每台机器的统计是独立对象"""
        stats = init_stats(2)
        assert stats[0] is not stats[1]

    def test_record_binary(self):
        """binary 结果按 1/0 计入"""
        stats = init_stats(2)
        stats = record(stats, 1, True)
        stats = record(stats, 1, False)
        assert stats[1] == ArmStats(attempts=2, sum_of_rewards=1.0)
        assert stats[0] == ArmStats()

    def test_record_continuous(self):
        stats = record(init_stats(1), 0, 7.5)
        stats = record(stats, 0, 2.5)
        assert stats[0].attempts == 2
        assert stats[0].average == pytest.approx(5.0)

    def test_record_does_not_mutate_input(self):
        """record 返回新的统计，不修改传入的列表"""
        stats = init_stats(2)
        updated = record(stats, 0, True)
        assert stats[0].attempts == 0
        assert updated[0].attempts == 1

    def test_record_invalid_arm(self):
        with pytest.raises(InvalidArmIndex):
            record(init_stats(2), 2, True)
        with pytest.raises(InvalidArmIndex):
            record(init_stats(2), -1, True)


class TestNumericReward:
    def test_conversions(self):
        assert numeric_reward(True) == 1.0
        assert numeric_reward(False) == 0.0
        assert numeric_reward(np.bool_(True)) == 1.0
        assert numeric_reward(6.3) == 6.3
