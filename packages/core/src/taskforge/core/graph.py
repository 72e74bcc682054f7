"""依赖图校验 -- 循环检测、传递可达性、悬空依赖

依赖边方向：依赖方 -> 被依赖方（"A 需要 B" 记录在 A 上）。
图使用 arena + index 表示（节点 ID 列表 + 下标邻接表），
遍历全部为迭代实现（白/灰/黑三色标记），不受递归深度限制。
本模块所有函数只读输入集合，可并发调用。
"""

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from .models.identifier import normalize_dependency_id
from .models.task import Subtask, Task

log = structlog.get_logger()

# 三色标记
_WHITE = 0  # 未访问
_GREY = 1  # 在当前 DFS 栈上
_BLACK = 2  # 已完全探索

CYCLE_SEPARATOR = " -> "


class DanglingDependency(BaseModel):
    """指向不存在节点的依赖引用"""

    node_id: str = Field(description="声明依赖的节点")
    missing_id: str = Field(description="不存在的被依赖节点")


class DependencyValidationResult(BaseModel):
    """依赖校验结果"""

    cycles: list[str] = Field(default_factory=list, description="循环依赖（a -> b -> a）")
    dangling: list[DanglingDependency] = Field(
        default_factory=list, description="悬空依赖"
    )

    @property
    def is_valid(self) -> bool:
        return not self.cycles and not self.dangling


class DependencyGraph:
    """依赖图 -- 节点 ID 列表 + 下标邻接表

    悬空引用不成为边，记录在 dangling 中。
    """

    def __init__(self) -> None:
        self._ids: list[str] = []
        self._index: dict[str, int] = {}
        self._adjacency: list[list[int]] = []
        self.dangling: list[DanglingDependency] = []

    @classmethod
    def from_edges(cls, entries: Iterable[tuple[str, list[str]]]) -> "DependencyGraph":
        """由 (节点 ID, 依赖 ID 列表) 序列构建

        两遍构建：先登记全部节点，再解析边，保证前向引用可解析。
        """
        graph = cls()
        pending: list[tuple[int, list[str]]] = []
        for node_id, deps in entries:
            pending.append((graph._add_node(node_id), deps))

        for node_idx, deps in pending:
            edges = graph._adjacency[node_idx]
            for dep_id in deps:
                dep_idx = graph._index.get(dep_id)
                if dep_idx is None:
                    graph.dangling.append(
                        DanglingDependency(
                            node_id=graph._ids[node_idx],
                            missing_id=dep_id,
                        )
                    )
                    continue
                if dep_idx not in edges:
                    edges.append(dep_idx)
        return graph

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Iterable[Any]]) -> "DependencyGraph":
        """由 {节点: [依赖...]} 映射构建，键和依赖均按 str() 归一"""
        return cls.from_edges(
            (str(node), [str(dep) for dep in deps]) for node, deps in mapping.items()
        )

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task | dict]) -> "DependencyGraph":
        """由任务列表构建，子任务展开为 "父.子" 复合标识符

        子任务内的纯数字依赖指向同级子任务（见 normalize_dependency_id）。
        """
        entries: list[tuple[str, list[str]]] = []
        for item in tasks:
            task = item if isinstance(item, Task) else Task.model_validate(item)
            parent_id = str(task.id)
            entries.append(
                (parent_id, [normalize_dependency_id(d) for d in task.dependencies])
            )
            for subtask in task.subtasks:
                entries.append(
                    (
                        subtask.full_id(parent_id),
                        [normalize_dependency_id(d, parent_id) for d in subtask.dependencies],
                    )
                )
        return cls.from_edges(entries)

    def _add_node(self, node_id: str) -> int:
        idx = self._index.get(node_id)
        if idx is not None:
            return idx
        idx = len(self._ids)
        self._ids.append(node_id)
        self._index[node_id] = idx
        self._adjacency.append([])
        return idx

    @property
    def node_ids(self) -> list[str]:
        return list(self._ids)

    def index_of(self, node_id: str) -> int | None:
        return self._index.get(node_id)

    def dependencies_of(self, node_id: str) -> list[str]:
        """节点的直接依赖（不含悬空引用）"""
        idx = self._index.get(node_id)
        if idx is None:
            return []
        return [self._ids[i] for i in self._adjacency[idx]]

    def __contains__(self, node_id: object) -> bool:
        return str(node_id) in self._index

    def __len__(self) -> int:
        return len(self._ids)


GraphSource = DependencyGraph | Mapping[Any, Iterable[Any]] | Iterable[Task | dict]


def build_graph(collection: GraphSource) -> DependencyGraph:
    """将任意支持的输入（图、映射、任务列表）归一为 DependencyGraph"""
    if isinstance(collection, DependencyGraph):
        return collection
    if isinstance(collection, Mapping):
        return DependencyGraph.from_mapping(collection)
    return DependencyGraph.from_tasks(collection)


def find_cycle_paths(collection: GraphSource) -> list[tuple[str, ...]]:
    """检测循环依赖，返回节点 ID 元组形式的循环

    全局一次三色 DFS：依次以每个未探索节点为根，
    遇到指向灰色节点（在当前栈上）的边即记录 path[该节点..] + 该节点，继续扫描。
    黑色节点不再重复探索。相同循环去重，保留首次出现顺序。
    """
    graph = build_graph(collection)
    color = [_WHITE] * len(graph)
    cycles: list[tuple[str, ...]] = []
    seen: set[tuple[str, ...]] = set()

    for root in range(len(graph)):
        if color[root] != _WHITE:
            continue

        # stack 即当前路径；position 记录节点在路径中的下标
        stack: list[list[int]] = [[root, 0]]
        position: dict[int, int] = {root: 0}
        color[root] = _GREY

        while stack:
            frame = stack[-1]
            node, edge_pos = frame
            edges = graph._adjacency[node]

            if edge_pos >= len(edges):
                color[node] = _BLACK
                position.pop(node, None)
                stack.pop()
                continue

            frame[1] = edge_pos + 1
            nxt = edges[edge_pos]

            if color[nxt] == _GREY:
                start = position[nxt]
                cycle = tuple(graph._ids[f[0]] for f in stack[start:]) + (graph._ids[nxt],)
                if cycle not in seen:
                    seen.add(cycle)
                    cycles.append(cycle)
            elif color[nxt] == _WHITE:
                color[nxt] = _GREY
                position[nxt] = len(stack)
                stack.append([nxt, 0])

    return cycles


def detect_cycles(collection: GraphSource) -> list[str]:
    """检测循环依赖，返回 "1 -> 2 -> 1" 形式的字符串列表（已去重）

    自依赖（任务依赖自身）返回 "1 -> 1"。悬空依赖在遍历中跳过，不报告为循环。
    """
    return [CYCLE_SEPARATOR.join(cycle) for cycle in find_cycle_paths(collection)]


def has_dependency(
    task: Task | Subtask | str | int,
    target_id: str | int,
    all_tasks: GraphSource,
) -> bool:
    """判断 task 是否直接或间接依赖 target_id

    使用独立的 visited 集合迭代遍历，首次命中即返回 True。
    起点或目标不在集合中、目标不可达时返回 False。
    此方法不抛出异常，也不报告循环。

    Args:
        task: 起点任务（Task / Subtask 取其 id；也可直接传标识符）
        target_id: 目标标识符
        all_tasks: 全部任务（图、映射或任务列表）
    """
    start_id = str(task.id) if isinstance(task, (Task, Subtask)) else str(task)
    try:
        graph = build_graph(all_tasks)
    except (ValidationError, TypeError, ValueError) as e:
        log.debug("has_dependency_invalid_collection", error=str(e))
        return False

    start = graph.index_of(start_id)
    target = graph.index_of(str(target_id))
    if start is None or target is None:
        return False

    visited: set[int] = set()
    pending = [start]
    while pending:
        node = pending.pop()
        if node in visited:
            continue
        visited.add(node)
        for dep in graph._adjacency[node]:
            if dep == target:
                return True
            if dep not in visited:
                pending.append(dep)
    return False


def find_dangling_dependencies(collection: GraphSource) -> list[DanglingDependency]:
    """列出指向不存在节点的依赖引用"""
    return list(build_graph(collection).dangling)


def validate_dependencies(collection: GraphSource) -> DependencyValidationResult:
    """完整依赖校验：循环 + 悬空引用"""
    graph = build_graph(collection)
    result = DependencyValidationResult(
        cycles=detect_cycles(graph),
        dangling=list(graph.dangling),
    )
    if not result.is_valid:
        log.debug(
            "dependency_validation_failed",
            cycle_count=len(result.cycles),
            dangling_count=len(result.dangling),
        )
    return result
