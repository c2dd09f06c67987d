"""多臂老虎机模拟 API 路由

整个进程只维护一个模拟实例（单会话），展示层通过 /state 轮询快照。
"""

from fastapi import APIRouter, Depends

from core.simulation import Simulation, SimulationConfig, run_comparison
from web.schemas import (
    AgentSummary,
    ChoiceRequest,
    ComparisonRequest,
    ComparisonResponse,
    SimulationStartRequest,
    SimulationStateResponse,
)

router = APIRouter(prefix="/api/simulation", tags=["simulation"])

_session = Simulation()


def get_simulation():
    """当前会话的模拟实例（测试时可以通过 dependency_overrides 替换）"""
    return _session


@router.post("/start", response_model=SimulationStateResponse)
async def start_simulation(req: SimulationStartRequest, sim: Simulation = Depends(get_simulation)):
    """用新配置开始一次模拟（丢弃正在进行的模拟）"""
    config = SimulationConfig(
        num_arms=req.num_arms,
        num_rounds=req.num_rounds,
        reward_family=req.reward_family,
        algorithms=tuple(req.algorithms),
    )
    sim.start(config)
    return sim.snapshot().as_dict()


@router.post("/choose", response_model=SimulationStateResponse)
async def choose_arm(req: ChoiceRequest, sim: Simulation = Depends(get_simulation)):
    """提交人类玩家的选择，所有算法同步走一轮"""
    sim.submit_human_choice(req.arm)
    return sim.snapshot().as_dict()


@router.post("/stop", response_model=SimulationStateResponse)
async def stop_simulation(sim: Simulation = Depends(get_simulation)):
    """停止并丢弃当前模拟"""
    sim.stop()
    return sim.snapshot().as_dict()


@router.get("/state", response_model=SimulationStateResponse)
async def get_state(sim: Simulation = Depends(get_simulation)):
    """当前快照"""
    return sim.snapshot().as_dict()


@router.get("/summary", response_model=list[AgentSummary])
async def get_summary(sim: Simulation = Depends(get_simulation)):
    """每个智能体的得分摘要"""
    return sim.summary()


@router.post("/compare", response_model=ComparisonResponse)
def compare_algorithms(req: ComparisonRequest):
    """重复多次模拟，对比各算法的平均表现"""
    return run_comparison(
        algorithms=req.algorithms,
        k=req.k,
        steps=req.steps,
        reward_family=req.reward_family,
        n_runs=req.n_runs,
        human_policy=req.human_policy,
    )
