"""
模拟编排模块

一次模拟 = 一个人类玩家 + 若干算法智能体，在同一组机器上同步进行若干轮。
开始时生成真实参数和完整的结果矩阵（rounds × arms），之后每一轮：
人类提交选择 → 每个算法根据自己的统计做选择 → 所有智能体从结果矩阵同一行取结果
→ 更新统计 → 追加一条累计得分记录。

状态机：IDLE → RUNNING → COMPLETE，stop() 从 RUNNING / COMPLETE 回到 IDLE。
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from core.algorithms import ALL_ALGORITHMS, get_algorithm
from core.bandits import BanditEnvironment, RewardFamily, resolve_rng
from core.errors import InvalidArmIndex, SimulationStateError, UnknownAlgorithm
from core.stats import init_stats, numeric_reward, record

logger = logging.getLogger(__name__)

HUMAN = "human"

STOP_NOTIFICATION = "模拟已结束。请开始新的模拟以更改配置。"


class SimulationState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SimulationConfig:
    """
    一次模拟的配置，整个运行期间不可变

    参数:
        num_arms: 机器数量（>= 1）
        num_rounds: 轮数（>= 1）
        reward_family: 奖励类型 binary / continuous（也接受 bernoulli / gaussian）
        algorithms: 参与对比的算法名称，可以为空；去重后按规范顺序排列
    """

    num_arms: int
    num_rounds: int
    reward_family: RewardFamily = RewardFamily.BINARY
    algorithms: tuple = ()

    def __post_init__(self):
        for attr in ("num_arms", "num_rounds"):
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise TypeError(f"{attr} 必须是整数，得到 {value!r}")
            if value < 1:
                raise ValueError(f"{attr} 必须 >= 1，得到 {value}")
        if isinstance(self.algorithms, str):
            raise TypeError(f"algorithms 必须是算法名称的序列，得到字符串 {self.algorithms!r}")
        for name in self.algorithms:
            if name not in ALL_ALGORITHMS:
                raise UnknownAlgorithm(name)

        # frozen dataclass 只能通过 object.__setattr__ 做规范化
        object.__setattr__(self, "num_arms", int(self.num_arms))
        object.__setattr__(self, "num_rounds", int(self.num_rounds))
        object.__setattr__(self, "reward_family", RewardFamily.coerce(self.reward_family))
        active = set(self.algorithms)
        object.__setattr__(self, "algorithms",
                           tuple(name for name in ALL_ALGORITHMS if name in active))


@dataclass
class AgentState:
    """一个智能体（人类或某个算法）在本次模拟中的状态"""

    name: str
    stats: list
    last_choice: int = None
    last_reward: object = None
    score: float = 0.0

    @property
    def is_human(self):
        return self.name == HUMAN


@dataclass(frozen=True)
class PerformanceRecord:
    """一轮结束后的累计得分，round 从 1 开始（已完成的轮数）"""

    round: int
    human_score: float
    algorithm_scores: dict = field(default_factory=dict)

    def as_dict(self):
        return {"round": self.round, HUMAN: self.human_score, **self.algorithm_scores}


@dataclass(frozen=True)
class AgentView:
    """快照里单个智能体的可见信息"""

    name: str
    last_choice: int
    last_reward: object
    score: float


@dataclass(frozen=True)
class SimulationSnapshot:
    """给展示层读取的只读快照"""

    state: SimulationState
    current_round: int
    num_rounds: int
    is_complete: bool
    agents: tuple
    performance: tuple
    last_player_reward: float
    notification: str = None

    def as_dict(self):
        return {
            "state": self.state.value,
            "current_round": self.current_round,
            "num_rounds": self.num_rounds,
            "is_complete": self.is_complete,
            "agents": [
                {
                    "name": a.name,
                    "last_choice": a.last_choice,
                    "last_reward": None if a.last_reward is None else numeric_reward(a.last_reward),
                    "score": a.score,
                }
                for a in self.agents
            ],
            "performance": [p.as_dict() for p in self.performance],
            "last_player_reward": self.last_player_reward,
            "notification": self.notification,
        }


class Simulation:
    """
    模拟状态机

    同一时刻只维护一次运行；start() 总是丢弃旧的运行并开始一个全新的。
    只有本对象可以推进 current_round 和修改智能体统计。
    start / stop / submit_human_choice / snapshot / summary 持有同一把锁，
    多线程调用时每一轮仍然是原子的。
    """

    def __init__(self, rng=None):
        self.rng = resolve_rng(rng)
        self.notification = None
        self._lock = threading.RLock()
        self._reset()

    def _reset(self):
        self.state = SimulationState.IDLE
        self.config = None
        self.environment = None
        self.outcomes = None
        self.current_round = 0
        self.agents = {}
        self._performance = []
        self.last_player_reward = None

    # ===== 生命周期 =====

    def start(self, config):
        """
        开始一次新模拟

        1. 生成每台机器的真实参数
        2. 预生成 rounds × arms 的结果矩阵
        3. 人类和每个启用的算法都从零统计开始
        """
        with self._lock:
            self.environment = BanditEnvironment(config.num_arms, config.reward_family, self.rng)
            self.outcomes = self.environment.outcome_grid(config.num_rounds)
            self.config = config
            self.current_round = 0
            self.agents = {
                name: AgentState(name=name, stats=init_stats(config.num_arms))
                for name in (HUMAN, *config.algorithms)
            }
            self._performance = []
            self.last_player_reward = None
            self.notification = None
            self.state = SimulationState.RUNNING
        logger.info("模拟开始: %d 台机器, %d 轮, %s, 算法 %s",
                    config.num_arms, config.num_rounds,
                    config.reward_family.value, list(config.algorithms))

    def stop(self):
        """丢弃本次运行的全部状态，回到 IDLE"""
        with self._lock:
            if self.state is SimulationState.IDLE:
                raise SimulationStateError("模拟尚未开始，无法停止")
            logger.info("模拟停止于第 %d/%d 轮", self.current_round, self.config.num_rounds)
            self._reset()
            self.notification = STOP_NOTIFICATION

    def submit_human_choice(self, arm_index):
        """
        处理人类玩家的一次选择，并让所有算法各走一步

        参数:
            arm_index: 人类选择的机器

        整轮要么全部完成，要么（出错时）完全不生效。
        """
        with self._lock:
            self._play_round(arm_index)

    def _play_round(self, arm_index):
        if self.state is not SimulationState.RUNNING:
            raise SimulationStateError(f"当前状态为 {self.state.value}，不能提交选择")
        self._check_arm(arm_index)

        row = self.outcomes[self.current_round]

        # 先让每个算法根据本轮之前的统计做出选择，再统一更新
        choices = {HUMAN: int(arm_index)}
        for name in self.config.algorithms:
            agent = self.agents[name]
            choice = get_algorithm(name)(agent.stats, self.config, self.rng)
            self._check_arm(choice)
            choices[name] = choice

        for name, choice in choices.items():
            agent = self.agents[name]
            outcome = row[choice].item()
            agent.stats = record(agent.stats, choice, outcome)
            agent.last_choice = choice
            agent.last_reward = outcome
            agent.score += numeric_reward(outcome)

        human = self.agents[HUMAN]
        self.last_player_reward = numeric_reward(human.last_reward)
        self.current_round += 1
        self._performance.append(PerformanceRecord(
            round=self.current_round,
            human_score=human.score,
            algorithm_scores={name: self.agents[name].score for name in self.config.algorithms},
        ))
        logger.debug("第 %d 轮: 选择 %s", self.current_round, choices)

        if self.current_round == self.config.num_rounds:
            self.state = SimulationState.COMPLETE
            logger.info("模拟完成: %s", {n: a.score for n, a in self.agents.items()})

    def _check_arm(self, arm_index):
        num_arms = self.config.num_arms
        if isinstance(arm_index, bool) or not isinstance(arm_index, (int, np.integer)) \
                or not 0 <= arm_index < num_arms:
            raise InvalidArmIndex(arm_index, num_arms)

    # ===== 只读视图 =====

    @property
    def is_complete(self):
        return self.state is SimulationState.COMPLETE

    @property
    def performance(self):
        return tuple(self._performance)

    @property
    def ground_truth(self):
        """每台机器的真实参数（用于结束后揭晓答案）"""
        return None if self.environment is None else self.environment.arms

    def snapshot(self):
        with self._lock:
            agents = tuple(
                AgentView(a.name, a.last_choice, a.last_reward, a.score)
                for a in self.agents.values()
            )
            return SimulationSnapshot(
                state=self.state,
                current_round=self.current_round,
                num_rounds=0 if self.config is None else self.config.num_rounds,
                is_complete=self.is_complete,
                agents=agents,
                performance=self.performance,
                last_player_reward=self.last_player_reward,
                notification=self.notification,
            )

    def final_score(self, name):
        """
        最终得分

        binary: 累计成功次数
        continuous: 累计奖励 / 总轮数（平均评分）

        name 是合法算法但本次未启用时抛出 KeyError。
        """
        with self._lock:
            if self.state is SimulationState.IDLE:
                raise SimulationStateError("没有正在进行的模拟")
            if name not in self.agents:
                if name in ALL_ALGORITHMS:
                    raise KeyError(f"算法 {name!r} 未参与本次模拟")
                raise UnknownAlgorithm(name)
            score = self.agents[name].score
            if self.config.reward_family is RewardFamily.CONTINUOUS:
                return score / self.config.num_rounds
            return score

    def summary(self):
        """每个智能体的得分摘要，binary 额外给出成功率（%）"""
        with self._lock:
            if self.state is SimulationState.IDLE:
                raise SimulationStateError("没有正在进行的模拟")
            binary = self.config.reward_family is RewardFamily.BINARY
            result = []
            for name, agent in self.agents.items():
                result.append({
                    "agent": name,
                    "total_reward": round(agent.score, 3),
                    "final_score": round(self.final_score(name), 3),
                    "success_rate": round(agent.score / self.config.num_rounds * 100, 1) if binary else None,
                })
            return result


def _resolve_policy(policy):
    return get_algorithm(policy) if isinstance(policy, str) else policy


def play_out(simulation, policy="random"):
    """
    用一个策略代替人类玩家，把当前模拟一直玩到结束

    参数:
        simulation: 处于 RUNNING 状态的 Simulation
        policy: 算法名称，或签名为 (stats, config, rng) 的函数

    返回:
        最终的快照
    """
    choose = _resolve_policy(policy)
    while simulation.state is SimulationState.RUNNING:
        human = simulation.agents[HUMAN]
        simulation.submit_human_choice(choose(human.stats, simulation.config, simulation.rng))
    return simulation.snapshot()


def run_comparison(algorithms, k=5, steps=100, reward_family=RewardFamily.BINARY,
                   n_runs=50, human_policy="random", seed=None):
    """
    重复运行多次模拟，对比各算法的平均表现，返回 JSON 可序列化的 dict

    参数:
        algorithms: 参与对比的算法列表
        k: 机器数量
        steps: 每次模拟的轮数
        reward_family: 奖励类型
        n_runs: 重复模拟次数（取平均）
        human_policy: 人类座位由哪个算法代替
        seed: 随机种子，None 表示不固定

    返回:
        dict: {
            "agents": [...],
            "cumulative": {agent: [平均累计得分列表]},
            "optimal_pct": {agent: [选中最优机器的比例列表, 0~100]},
            "summary": [{agent, final_score, optimal_pct}, ...]
        }
    """
    config = SimulationConfig(num_arms=k, num_rounds=steps,
                              reward_family=reward_family, algorithms=tuple(algorithms))
    choose = _resolve_policy(human_policy)
    rng = np.random.default_rng(seed)
    agents = [HUMAN, *config.algorithms]

    cumulative_sum = {name: np.zeros(steps) for name in agents}
    optimal_sum = {name: np.zeros(steps) for name in agents}

    for _ in range(n_runs):
        sim = Simulation(rng=rng)
        sim.start(config)
        best_arm = sim.environment.best_arm
        while sim.state is SimulationState.RUNNING:
            step = sim.current_round
            human = sim.agents[HUMAN]
            sim.submit_human_choice(choose(human.stats, config, rng))
            for name in agents:
                agent = sim.agents[name]
                cumulative_sum[name][step] += agent.score
                optimal_sum[name][step] += (agent.last_choice == best_arm)

    avg_cumulative = {name: cumulative_sum[name] / n_runs for name in agents}
    avg_optimal = {name: optimal_sum[name] / n_runs * 100 for name in agents}

    # 摘要：最终得分按奖励类型换算，最优比例取最后 100 轮的平均
    tail = min(100, steps)
    summary = []
    for name in agents:
        final = avg_cumulative[name][-1]
        if config.reward_family is RewardFamily.CONTINUOUS:
            final = final / steps
        summary.append({
            "agent": name,
            "final_score": round(float(final), 3),
            "optimal_pct": round(float(np.mean(avg_optimal[name][-tail:])), 1),
        })

    logger.info("对比完成: %d 次运行, %s", n_runs, summary)

    return {
        "agents": agents,
        "reward_family": config.reward_family.value,
        "cumulative": {name: avg_cumulative[name].tolist() for name in agents},
        "optimal_pct": {name: avg_optimal[name].tolist() for name in agents},
        "summary": summary,
    }
