"""
每个智能体的运行统计

对每台机器记录 (尝试次数, 累计奖励)，这是所有算法做决策的充分统计量。
统计按臂的索引顺序存放，索引顺序就是平局时的优先顺序。
"""

from dataclasses import dataclass

import numpy as np

from core.errors import InvalidArmIndex


@dataclass
class ArmStats:
    """单台机器的统计：attempts 次尝试，累计奖励 sum_of_rewards"""

    attempts: int = 0
    sum_of_rewards: float = 0.0

    @property
    def average(self):
        """平均奖励；还没试过时返回 None"""
        if self.attempts == 0:
            return None
        return self.sum_of_rewards / self.attempts


def numeric_reward(outcome):
    """把结果转换成数值：binary 的 True/False 记作 1/0"""
    if isinstance(outcome, (bool, np.bool_)):
        return 1.0 if outcome else 0.0
    return float(outcome)


def init_stats(num_arms):
    """初始化统计：每台机器都是 0 次尝试、0 奖励"""
    return [ArmStats() for _ in range(num_arms)]


def record(stats, arm_index, outcome):
    """
    记录一次结果，返回更新后的统计（新列表，不修改传入的 stats）

    参数:
        stats: ArmStats 列表
        arm_index: 被选中的臂
        outcome: 该臂的结果（bool 或 float）

    返回:
        新的 ArmStats 列表
    """
    if not 0 <= arm_index < len(stats):
        raise InvalidArmIndex(arm_index, len(stats))

    updated = [ArmStats(s.attempts, s.sum_of_rewards) for s in stats]
    chosen = updated[arm_index]
    chosen.attempts += 1
    chosen.sum_of_rewards += numeric_reward(outcome)
    return updated
