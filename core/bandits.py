"""
多臂老虎机环境模块

提供奖励类型、每台机器（臂）的真实参数生成、单次结果采样，
以及一次模拟所需的预生成结果矩阵。
模拟编排器和 Web API 共用此模块。
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from core.errors import InvalidRewardFamily

logger = logging.getLogger(__name__)

# 真实参数的取值范围
BINARY_PROB_RANGE = (0.1, 0.9)
GAUSSIAN_MEAN_RANGE = (3.0, 9.0)
GAUSSIAN_STD_RANGE = (0.5, 1.5)

# 连续奖励被截断到这个区间
REWARD_MIN = 0.0
REWARD_MAX = 10.0

# 未显式传入随机源时使用的全局生成器（不设种子）
_default_rng = np.random.default_rng()


def resolve_rng(rng=None):
    """返回传入的随机源；没有传入时使用模块级的默认生成器"""
    return _default_rng if rng is None else rng


class RewardFamily(str, Enum):
    """奖励类型：二元（伯努利）或连续（高斯）"""

    BINARY = "binary"
    CONTINUOUS = "continuous"

    @classmethod
    def _missing_(cls, value):
        # 兼容旧名称 bernoulli / gaussian，以及大小写
        if isinstance(value, str):
            alias = _FAMILY_ALIASES.get(value.strip().lower())
            if alias is not None:
                return cls(alias)
        return None

    @classmethod
    def coerce(cls, value):
        """把字符串或枚举转换为 RewardFamily，无法识别时抛出 InvalidRewardFamily"""
        try:
            return cls(value)
        except ValueError:
            raise InvalidRewardFamily(value) from None


_FAMILY_ALIASES = {
    "binary": "binary",
    "bernoulli": "binary",
    "continuous": "continuous",
    "gaussian": "continuous",
}


@dataclass(frozen=True)
class BernoulliArm:
    """二元奖励的臂：以 probability 的概率成功"""

    probability: float

    @property
    def expected_reward(self):
        return self.probability


@dataclass(frozen=True)
class GaussianArm:
    """连续奖励的臂：奖励服从 N(mean, std²)，再截断到 [0, 10]"""

    mean: float
    std: float

    @property
    def expected_reward(self):
        return self.mean


def gaussian(mean, std, rng=None):
    """
    Box-Muller 变换生成一个正态分布样本

    参数:
        mean: 均值
        std: 标准差
        rng: numpy Generator，只使用它的 random() 均匀分布

    返回:
        z * std + mean，其中 z ~ N(0, 1)
    """
    rng = resolve_rng(rng)
    # u、v 不能为 0，否则 log(0) 没有定义
    u = 0.0
    while u == 0.0:
        u = rng.random()
    v = 0.0
    while v == 0.0:
        v = rng.random()
    z = math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
    return z * std + mean


def standard_normal(rng=None):
    """标准正态分布样本 N(0, 1)"""
    return gaussian(0.0, 1.0, rng)


def generate_ground_truth(num_arms, reward_family, rng=None):
    """
    为每台机器生成真实参数（智能体看不到这些值）

    参数:
        num_arms: 臂的数量
        reward_family: 奖励类型，binary 或 continuous
        rng: 随机源

    返回:
        长度为 num_arms 的 BernoulliArm / GaussianArm 列表
    """
    family = RewardFamily.coerce(reward_family)
    rng = resolve_rng(rng)

    arms = []
    for _ in range(num_arms):
        if family is RewardFamily.BINARY:
            arms.append(BernoulliArm(probability=float(rng.uniform(*BINARY_PROB_RANGE))))
        else:
            arms.append(GaussianArm(
                mean=float(rng.uniform(*GAUSSIAN_MEAN_RANGE)),
                std=float(rng.uniform(*GAUSSIAN_STD_RANGE)),
            ))
    return arms


def sample_outcome(arm, reward_family, rng=None):
    """
    拉一次某台机器，返回一个随机结果

    参数:
        arm: BernoulliArm 或 GaussianArm
        reward_family: 奖励类型
        rng: 随机源

    返回:
        binary: bool，成功为 True
        continuous: float，截断到 [0, 10] 并保留一位小数
    """
    family = RewardFamily.coerce(reward_family)
    rng = resolve_rng(rng)

    if family is RewardFamily.BINARY:
        return bool(rng.random() < arm.probability)

    value = gaussian(arm.mean, arm.std, rng)
    value = min(max(value, REWARD_MIN), REWARD_MAX)
    return round(value, 1)


class BanditEnvironment:
    """
    一次模拟的老虎机环境

    持有每台机器的真实参数，并可以一次性预生成 rounds × arms 的结果矩阵，
    保证所有智能体在同一轮选择同一台机器时看到相同的结果。
    """

    def __init__(self, num_arms, reward_family, rng=None):
        self.num_arms = num_arms
        self.reward_family = RewardFamily.coerce(reward_family)
        self.rng = resolve_rng(rng)
        # 真实参数：每次模拟独有，生成后不再修改
        self.arms = tuple(generate_ground_truth(num_arms, self.reward_family, self.rng))

    def pull(self, arm_index):
        """拉第 arm_index 台机器，返回一个新的随机结果"""
        return sample_outcome(self.arms[arm_index], self.reward_family, self.rng)

    def outcome_grid(self, num_rounds):
        """
        预生成结果矩阵

        参数:
            num_rounds: 轮数

        返回:
            形状为 (num_rounds, num_arms) 的只读 numpy 数组，
            binary 为 bool 类型，continuous 为 float 类型
        """
        dtype = bool if self.reward_family is RewardFamily.BINARY else float
        grid = np.empty((num_rounds, self.num_arms), dtype=dtype)
        for r in range(num_rounds):
            for a in range(self.num_arms):
                grid[r, a] = self.pull(a)
        grid.flags.writeable = False
        logger.debug("生成结果矩阵 %d x %d (%s)", num_rounds, self.num_arms,
                     self.reward_family.value)
        return grid

    @property
    def expected_rewards(self):
        """每台机器的期望奖励（binary 为成功率，continuous 为均值）"""
        return np.array([arm.expected_reward for arm in self.arms])

    @property
    def best_arm(self):
        """真正最好的那台机器"""
        return int(np.argmax(self.expected_rewards))
