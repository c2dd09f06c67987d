"""
多臂老虎机决策算法模块

五种选择策略：贪心、ε-贪心、随机、UCB、Thompson 采样。
每个算法都是纯函数：根据一个智能体自己的统计（ArmStats 列表）选出下一台机器。
统一签名为 algorithm(stats, config=None, rng=None) -> 臂索引。

平局时一律选择索引最小的那台机器（np.argmax 返回第一个最大值）。
"""

import math

import numpy as np

from core.bandits import RewardFamily, gaussian, resolve_rng, standard_normal
from core.errors import MissingConfiguration, UnknownAlgorithm

# ε-贪心的探索概率
EPSILON = 0.1
# 没试过的机器的乐观估计，防止它永远被一台奖励为 0 的机器压住
OPTIMISTIC_PRIOR = 0.5


def _require_config(config, name):
    if config is None:
        raise MissingConfiguration(name)
    return config


def greedy(stats, config=None, rng=None):
    """
    贪心策略：永远选平均奖励最高的机器

    参数:
        stats: ArmStats 列表
        config / rng: 不使用，保持统一签名

    返回:
        平均奖励最高的臂；没试过的臂按 0.5 计算
    """
    averages = [
        s.sum_of_rewards / s.attempts if s.attempts > 0 else OPTIMISTIC_PRIOR
        for s in stats
    ]
    return int(np.argmax(averages))


def epsilon_greedy(stats, config=None, rng=None):
    """
    ε-贪心策略：
    - 以 ε = 0.1 的概率随机选一台机器（探索）
    - 否则按贪心策略选（利用）
    """
    config = _require_config(config, "epsilon-greedy")
    rng = resolve_rng(rng)
    if rng.random() < EPSILON:
        return int(rng.integers(config.num_arms))
    return greedy(stats)


def random_choice(stats, config=None, rng=None):
    """随机策略：完全不看统计，均匀随机选一台"""
    config = _require_config(config, "random")
    rng = resolve_rng(rng)
    return int(rng.integers(config.num_arms))


def ucb(stats, config=None, rng=None):
    """
    UCB（置信上界）策略

    === 核心公式 ===
    score(a) = 平均奖励(a) + sqrt(2 * ln(总次数) / n(a))

    尝试次数越少，置信区间越宽，加成越大，越容易被选中（探索）。
    没试过的机器按 n = 1、平均奖励 = 0 计算。
    """
    total = sum(s.attempts for s in stats)
    if total == 0:
        # 一次都没拉过，ln(0) 没有定义，随机选一台
        return int(resolve_rng(rng).integers(len(stats)))

    log_total = math.log(total)
    scores = []
    for s in stats:
        if s.attempts == 0:
            n_pull, average = 1, 0.0
        else:
            n_pull, average = s.attempts, s.sum_of_rewards / s.attempts
        scores.append(average + math.sqrt(2.0 * log_total / n_pull))
    return int(np.argmax(scores))


def sample_gamma(shape, scale=1.0, rng=None):
    """
    Marsaglia-Tsang 方法采样 Gamma(shape, scale)

    shape < 1 时先采样 Gamma(shape + 1)，再乘以 U^(1/shape)。

    参数:
        shape: 形状参数，必须 > 0
        scale: 尺度参数
        rng: 随机源

    返回:
        一个 Gamma 分布样本
    """
    if shape <= 0:
        raise ValueError(f"shape 必须大于 0，得到 {shape}")
    rng = resolve_rng(rng)

    boost = 1.0
    if shape < 1.0:
        u = 0.0
        while u == 0.0:
            u = rng.random()
        boost = u ** (1.0 / shape)
        shape += 1.0

    d = shape - 1.0 / 3.0
    c = 1.0 / math.sqrt(9.0 * d)
    while True:
        x = standard_normal(rng)
        v = (1.0 + c * x) ** 3
        if v <= 0.0:
            continue
        u = rng.random()
        # 快速接受，绝大多数样本在这里返回
        if u < 1.0 - 0.0331 * x ** 4:
            return d * v * scale * boost
        if u > 0.0 and math.log(u) < 0.5 * x * x + d * (1.0 - v + math.log(v)):
            return d * v * scale * boost


def sample_beta(alpha, beta, rng=None):
    """Beta(α, β) = X / (X + Y)，其中 X ~ Gamma(α, 1)，Y ~ Gamma(β, 1)"""
    rng = resolve_rng(rng)
    x = sample_gamma(alpha, 1.0, rng)
    y = sample_gamma(beta, 1.0, rng)
    return x / (x + y)


def thompson(stats, config=None, rng=None):
    """
    Thompson 采样：从每台机器的后验分布里各抽一个样本，选样本最大的那台

    - binary: 后验 Beta(成功次数 + 1, 失败次数 + 1)，没试过时为 Beta(1, 1)
    - continuous: 后验 N(平均奖励, 1/sqrt(n))，没试过时为 N(0, 1)
    """
    config = _require_config(config, "thompson")
    rng = resolve_rng(rng)
    family = RewardFamily.coerce(config.reward_family)

    samples = []
    for s in stats:
        if family is RewardFamily.BINARY:
            successes = s.sum_of_rewards
            failures = s.attempts - successes
            samples.append(sample_beta(successes + 1.0, failures + 1.0, rng))
        elif s.attempts == 0:
            samples.append(gaussian(0.0, 1.0, rng))
        else:
            mean = s.sum_of_rewards / s.attempts
            std = 1.0 / math.sqrt(s.attempts)
            samples.append(gaussian(mean, std, rng))
    return int(np.argmax(samples))


# 算法注册表，顺序即规范顺序（性能记录、快照都按这个顺序排列）
ALGORITHMS = {
    "greedy": greedy,
    "epsilon-greedy": epsilon_greedy,
    "random": random_choice,
    "ucb": ucb,
    "thompson": thompson,
}

ALL_ALGORITHMS = tuple(ALGORITHMS)


def get_algorithm(name):
    """按名称取算法函数"""
    try:
        return ALGORITHMS[name]
    except KeyError:
        raise UnknownAlgorithm(name) from None
