"""
多臂老虎机人机对战 —— 你和几个算法在同一组机器上比赛

=== 玩法 ===
面前有若干台机器，每台机器的真实奖励你不知道。
每一轮你选一台机器，算法们也各自选一台，所有人在同一轮选同一台机器时结果完全相同。
若干轮之后比较谁的累计奖励更高。

=== 参赛算法 ===
- greedy：永远选平均奖励最高的机器
- epsilon-greedy：90% 贪心，10% 随机探索
- ucb：平均奖励 + 置信区间加成，尝试少的机器加成大
- thompson：从后验分布里抽样，选样本最大的那台

直接回车 = 让随机策略代替你选择。
"""

import sys
from pathlib import Path

import matplotlib.pyplot as plt

# 把项目根目录加入 sys.path，以便从 core/ 导入
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from core.algorithms import random_choice
from core.simulation import HUMAN, Simulation, SimulationConfig


def ask_choice(sim):
    """从终端读取一次选择，非法输入时重新询问"""
    num_arms = sim.config.num_arms
    while True:
        text = input(f"第 {sim.current_round + 1} 轮，选择机器 [0-{num_arms - 1}]: ").strip()
        if not text:
            return random_choice(sim.agents[HUMAN].stats, sim.config, sim.rng)
        if text.isdigit() and int(text) < num_arms:
            return int(text)
        print("  无效的选择，请重新输入")


def main():
    """主函数：进行一局人机对战"""

    print("=" * 50)
    print("多臂老虎机人机对战")
    print("=" * 50)

    config = SimulationConfig(
        num_arms=4,
        num_rounds=20,
        reward_family="binary",
        algorithms=("greedy", "epsilon-greedy", "ucb", "thompson"),
    )
    print(f"\n设置：{config.num_arms} 台机器，{config.num_rounds} 轮，奖励类型 {config.reward_family.value}")
    print(f"对手：{', '.join(config.algorithms)}\n")

    sim = Simulation()
    sim.start(config)

    while not sim.is_complete:
        sim.submit_human_choice(ask_choice(sim))
        for agent in sim.snapshot().agents:
            print(f"  {agent.name:>15}: 机器 {agent.last_choice} → {agent.last_reward}  (累计 {agent.score:g})")

    # ===== 打印结果摘要 =====
    print("\n结果摘要：")
    print("-" * 40)
    for item in sim.summary():
        line = f"  {item['agent']:>15}  →  得分: {item['final_score']:g}"
        if item["success_rate"] is not None:
            line += f",  成功率: {item['success_rate']:.1f}%"
        print(line)

    print("\n真实参数：")
    for i, arm in enumerate(sim.ground_truth):
        print(f"  机器 {i}: {arm}")

    # ===== 画图 =====
    rounds = [p.round for p in sim.performance]
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(rounds, [p.human_score for p in sim.performance], label=HUMAN, linewidth=2)
    for name in config.algorithms:
        ax.plot(rounds, [p.algorithm_scores[name] for p in sim.performance], label=name)
    ax.set_xlabel('轮数')
    ax.set_ylabel('累计奖励')
    ax.set_title('人类 vs 算法')
    ax.legend()

    plt.tight_layout()
    plt.savefig('examples/01_bandit_session.png', dpi=100)
    print("\n图表已保存到 examples/01_bandit_session.png")
    plt.show()


if __name__ == '__main__':
    main()
