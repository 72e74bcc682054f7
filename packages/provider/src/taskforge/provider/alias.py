"""AliasRegistry -- 角色 -> 模型 注册表

角色是调用方使用的语义名称：
- main: 常规分析
- research: 需要检索增强时使用（--research）
- fallback: 主模型可恢复失败时的降级模型
"""

import structlog
from pydantic import BaseModel, Field

from .config import ProviderConfig

log = structlog.get_logger()

MAIN_ROLE = "main"
RESEARCH_ROLE = "research"
FALLBACK_ROLE = "fallback"


class AliasConfig(BaseModel):
    """单个角色的配置"""

    name: str = Field(description="角色名称（main/research/fallback）")
    model: str = Field(default="", description="LiteLLM 模型名（provider/model），空表示未配置")
    description: str = Field(default="", description="角色用途描述")


def _aliases_from_config(config: ProviderConfig) -> list[AliasConfig]:
    return [
        AliasConfig(
            name=MAIN_ROLE,
            model=config.main_model,
            description="常规复杂度分析",
        ),
        AliasConfig(
            name=RESEARCH_ROLE,
            model=config.research_model,
            description="检索增强分析",
        ),
        AliasConfig(
            name=FALLBACK_ROLE,
            model=config.fallback_model,
            description="降级备选",
        ),
    ]


class AliasRegistry:
    """角色注册表 -- 启动时从配置加载，运行期间不变"""

    def __init__(self, aliases: list[AliasConfig] | None = None) -> None:
        """
        Args:
            aliases: 角色配置列表，None 时使用默认 ProviderConfig
        """
        alias_list = aliases if aliases is not None else _aliases_from_config(ProviderConfig())
        # 按 name 建立索引，后者覆盖前者
        self._aliases: dict[str, AliasConfig] = {}
        for alias in alias_list:
            self._aliases[alias.name] = alias

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "AliasRegistry":
        return cls(_aliases_from_config(config))

    def resolve(self, role: str) -> str:
        """将角色解析为模型名

        行为规则:
            1. 角色已注册且配置了模型 -> 返回该模型
            2. 否则 -> 返回 main 角色的模型，并记录 warning 日志
        """
        alias = self._aliases.get(role)
        if alias is not None and alias.model:
            return alias.model

        log.warning("unknown_role_fallback_to_main", role=role)
        main = self._aliases.get(MAIN_ROLE)
        if main is None or not main.model:
            raise KeyError(f"未配置 main 角色模型，无法解析角色: {role}")
        return main.model

    def fallback_model(self) -> str | None:
        """降级模型，未配置时返回 None"""
        alias = self._aliases.get(FALLBACK_ROLE)
        if alias is None or not alias.model:
            return None
        return alias.model

    def get_alias(self, role: str) -> AliasConfig | None:
        """按名称查询单个角色配置"""
        return self._aliases.get(role)

    def list_all(self) -> list[AliasConfig]:
        """列出所有已注册的角色（按 name 排序）"""
        return sorted(self._aliases.values(), key=lambda a: a.name)
