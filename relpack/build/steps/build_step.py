"""
发布步骤基类模块

定义发布步骤的抽象接口。
"""

from abc import ABC, abstractmethod

from relpack.build.build_context import ReleaseContext


class ReleaseStep(ABC):
    """发布步骤抽象基类"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, context: ReleaseContext) -> None:
        """执行发布步骤"""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
