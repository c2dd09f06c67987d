"""请求/响应的 Pydantic 数据模型"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

AlgorithmName = Literal["greedy", "epsilon-greedy", "random", "ucb", "thompson"]
RewardFamilyName = Literal["binary", "continuous", "bernoulli", "gaussian"]


# ===== 单次模拟 =====


class SimulationStartRequest(BaseModel):
    """开始模拟的配置"""

    num_arms: int = Field(default=3, ge=1, le=20, description="机器数量")
    num_rounds: int = Field(default=20, ge=1, le=1000, description="轮数")
    reward_family: RewardFamilyName = Field(default="binary", description="奖励类型")
    algorithms: list[AlgorithmName] = Field(
        default=["greedy", "epsilon-greedy", "ucb"],
        max_length=5,
        description="参与对比的算法",
    )


class ChoiceRequest(BaseModel):
    """人类玩家的一次选择"""

    arm: int = Field(ge=0, description="选择的机器索引")


class AgentInfo(BaseModel):
    """单个智能体的最近选择和结果"""

    name: str
    last_choice: Optional[int]
    last_reward: Optional[float]
    score: float


class SimulationStateResponse(BaseModel):
    """模拟快照"""

    state: Literal["idle", "running", "complete"]
    current_round: int
    num_rounds: int
    is_complete: bool
    agents: list[AgentInfo]
    performance: list[dict[str, Union[int, float]]]
    last_player_reward: Optional[float]
    notification: Optional[str]


class AgentSummary(BaseModel):
    """单个智能体的得分摘要"""

    agent: str
    total_reward: float
    final_score: float
    success_rate: Optional[float]


# ===== 多次模拟对比 =====


class ComparisonRequest(BaseModel):
    """算法对比实验请求参数"""

    algorithms: list[AlgorithmName] = Field(
        default=["greedy", "epsilon-greedy", "random", "ucb", "thompson"],
        min_length=1,
        max_length=5,
        description="要对比的算法",
    )
    k: int = Field(default=5, ge=1, le=20, description="机器数量")
    steps: int = Field(default=100, ge=1, le=1000, description="每次模拟轮数")
    reward_family: RewardFamilyName = Field(default="binary", description="奖励类型")
    n_runs: int = Field(default=50, ge=1, le=500, description="重复模拟次数")
    human_policy: AlgorithmName = Field(default="random", description="代替人类玩家的算法")


class ComparisonSummaryItem(BaseModel):
    """单个智能体的对比摘要"""

    agent: str
    final_score: float
    optimal_pct: float


class ComparisonResponse(BaseModel):
    """算法对比实验响应"""

    agents: list[str]
    reward_family: str
    cumulative: dict[str, list[float]]
    optimal_pct: dict[str, list[float]]
    summary: list[ComparisonSummaryItem]
