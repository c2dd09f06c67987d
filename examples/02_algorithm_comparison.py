"""
五种算法的多次模拟对比

人类座位由随机策略代替，重复运行多次取平均，
比较各算法的累计奖励和选中最优机器的比例。
"""

import sys
from pathlib import Path

import matplotlib.pyplot as plt

# 把项目根目录加入 sys.path，以便从 core/ 导入
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from core.simulation import run_comparison


def main():
    """主函数：对比五种算法"""

    print("=" * 50)
    print("多臂老虎机算法对比")
    print("=" * 50)

    # 实验参数
    n_runs = 200
    steps = 200
    k = 5
    algorithms = ["greedy", "epsilon-greedy", "random", "ucb", "thompson"]

    for family in ("binary", "continuous"):
        print(f"\n[{family}] {k} 台机器，每次 {steps} 轮，重复 {n_runs} 次取平均")
        result = run_comparison(algorithms, k=k, steps=steps, reward_family=family, n_runs=n_runs)

        print("结果摘要（最优比例取最后 100 轮的平均）：")
        print("-" * 40)
        for item in result["summary"]:
            print(f"  {item['agent']:>15}  →  得分: {item['final_score']:.2f},  最优机器比例: {item['optimal_pct']:.1f}%")

        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8))
        fig.suptitle(f'算法对比（{family}）', fontsize=14)

        # 图1：平均累计奖励
        for name in result["agents"]:
            ax1.plot(result["cumulative"][name], label=name)
        ax1.set_xlabel('轮数')
        ax1.set_ylabel('平均累计奖励')
        ax1.legend()

        # 图2：最优机器比例
        for name in result["agents"]:
            ax2.plot(result["optimal_pct"][name], label=name)
        ax2.set_xlabel('轮数')
        ax2.set_ylabel('最优机器比例 (%)')
        ax2.legend()

        plt.tight_layout()
        plt.savefig(f'examples/02_comparison_{family}.png', dpi=100)
        print(f"图表已保存到 examples/02_comparison_{family}.png")

    plt.show()


if __name__ == '__main__':
    main()
