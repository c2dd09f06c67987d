"""模拟引擎的异常类型"""


class BanditError(Exception):
    """所有模拟引擎异常的基类"""


class InvalidRewardFamily(BanditError, ValueError):
    """未知的奖励类型（只支持 binary / continuous）"""

    def __init__(self, family):
        super().__init__(f"未知的奖励类型: {family!r}")
        self.family = family


class MissingConfiguration(BanditError):
    """算法需要 SimulationConfig，但调用时没有提供"""

    def __init__(self, algorithm):
        super().__init__(f"算法 {algorithm!r} 需要提供配置")
        self.algorithm = algorithm


class InvalidArmIndex(BanditError, IndexError):
    """选择的臂不在 [0, num_arms) 范围内"""

    def __init__(self, arm, num_arms):
        super().__init__(f"臂索引 {arm!r} 超出范围 [0, {num_arms})")
        self.arm = arm
        self.num_arms = num_arms


class UnknownAlgorithm(BanditError, ValueError):
    """未注册的算法名称"""

    def __init__(self, name):
        super().__init__(f"未知的算法: {name!r}")
        self.name = name


class SimulationStateError(BanditError):
    """当前模拟状态不允许该操作"""
