"""ComplexityAnalysisService -- 复杂度分析流水线

状态机:
    LOAD_INPUT -> FILTER -> {SHORT_CIRCUIT_EMPTY | LOAD_EXISTING_REPORT}
    -> COMPILE_PROMPT -> GENERATE -> PARSE -> RECONCILE -> MERGE -> PERSIST -> DONE

- 筛选结果为空且已有历史报告：DONE_NOCHANGE，原样返回历史报告，不调用 LLM、不写文件
- 筛选结果为空且无历史报告：直接写入空报告
- 任一步骤失败：FAILED，异常原样向上抛出，本层不重试
- 读-合并-写 在报告锁内完成，写入为原子替换
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Protocol

import structlog
from pydantic import BaseModel, Field
from taskforge.core.config import DEFAULT_PROJECT_NAME, DEFAULT_THRESHOLD_SCORE
from taskforge.core.graph import validate_dependencies
from taskforge.core.models import (
    TERMINAL_PIPELINE_STATES,
    ComplexityAnalysisEntry,
    ComplexityMode,
    ComplexityReport,
    PipelineState,
    Task,
    TasksFile,
    get_valid_complexity_mode,
    validate_pipeline_transition,
)
from taskforge.core.report import (
    ComplexitySummary,
    build_report,
    index_by_task_id,
    merge_complexity_entries,
    summarize_complexity,
)
from taskforge.core.selection import TaskSelection, select_tasks
from taskforge.core.store import StoreGroup
from taskforge.provider import ErrorKind, ModelCallResult, ProviderError
from ulid import ULID

from ..parsing import parse_complexity_response, reconcile_entries
from ..prompts import SYSTEM_PROMPT, build_complexity_prompt

log = structlog.get_logger()

AUTH_REMEDIATION_HINT = (
    "LLM 鉴权失败：请检查 LITELLM_API_KEY，或所选模型 provider 的标准环境变量"
    "（如 ANTHROPIC_API_KEY / OPENAI_API_KEY / PERPLEXITY_API_KEY）。"
)


class TextGenerator(Protocol):
    """文本生成能力接口（LLMService 或测试替身）"""

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        role: str = "main",
        output_format: str = "text",
    ) -> ModelCallResult | str: ...


class AnalysisRequest(BaseModel):
    """一次复杂度分析的输入参数"""

    tasks_path: Path = Field(description="任务文件路径")
    report_path: Path = Field(description="报告输出路径")
    ids: list[int | str] | str | None = Field(
        default=None, description="显式任务 ID（优先于区间）"
    )
    from_id: int | None = Field(default=None, description="区间起点（含）")
    to_id: int | None = Field(default=None, description="区间终点（含）")
    use_research: bool = Field(default=False, description="使用 research 角色")
    mode: ComplexityMode | str | None = Field(default=None, description="prompt 档位")
    threshold_score: float = Field(default=DEFAULT_THRESHOLD_SCORE, description="扩展阈值")
    project_name: str = Field(default=DEFAULT_PROJECT_NAME, description="项目名称")

    @property
    def role(self) -> str:
        return "research" if self.use_research else "main"


class GenerationResult(BaseModel):
    """生成结果在流水线边界处的统一形态"""

    text: str
    telemetry: ModelCallResult | None = None

    @classmethod
    def from_raw(cls, raw: ModelCallResult | str) -> "GenerationResult":
        if isinstance(raw, ModelCallResult):
            return cls(text=raw.content, telemetry=raw)
        if isinstance(raw, str):
            return cls(text=raw)
        raise TypeError(f"不支持的生成结果类型: {type(raw).__name__}")


class PipelineRun:
    """单次执行的状态机实例"""

    def __init__(self) -> None:
        self.run_id = str(ULID())
        self.state = PipelineState.LOAD_INPUT

    def advance(self, to_state: PipelineState, **details) -> None:
        """推进状态机，非法流转视为编程错误"""
        from_state = self.state
        if not validate_pipeline_transition(from_state, to_state):
            raise RuntimeError(f"非法流水线状态流转: {from_state} -> {to_state}")
        self.state = to_state
        log.debug(
            "pipeline_transition",
            from_state=from_state.value,
            to_state=to_state.value,
            **details,
        )


@dataclass(frozen=True)
class PipelineContext:
    """流水线各步骤共享的只读上下文"""

    request: AnalysisRequest
    tasks: tuple[Task, ...]
    selection: TaskSelection
    prior_report: ComplexityReport | None = None
    prior_index: Mapping[int, ComplexityAnalysisEntry] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def mode(self) -> ComplexityMode:
        return get_valid_complexity_mode(self.request.mode)

    def with_prior(self, report: ComplexityReport | None) -> "PipelineContext":
        return replace(self, prior_report=report, prior_index=index_by_task_id(report))


class AnalysisOutcome(BaseModel):
    """流水线执行结果"""

    run_id: str
    state: PipelineState
    report: ComplexityReport | None = None
    selection: TaskSelection
    previous_entry_count: int = Field(default=0, ge=0, description="合并前报告条目数")
    reanalyzed_ids: list[int] = Field(default_factory=list, description="覆盖了历史条目的 ID")
    missing_ids: list[int] = Field(default_factory=list, description="补默认条目的 ID")
    unexpected_ids: list[int] = Field(default_factory=list)
    telemetry: ModelCallResult | None = None
    summary: ComplexitySummary = Field(default_factory=ComplexitySummary)

    @property
    def wrote_report(self) -> bool:
        return self.state == PipelineState.DONE


class ComplexityAnalysisService:
    """复杂度分析业务服务"""

    def __init__(self, store_group: StoreGroup, generator: TextGenerator) -> None:
        self._stores = store_group
        self._generator = generator

    async def analyze(self, request: AnalysisRequest) -> AnalysisOutcome:
        """执行一次完整的复杂度分析

        Raises:
            InputError: 任务文件缺失或格式错误（不会调用 LLM）
            ProviderError: 生成调用失败
            ResponseParseError: 生成结果无法解析
            ReportLockTimeoutError: 等待报告锁超时
        """
        run = PipelineRun()
        structlog.contextvars.bind_contextvars(run_id=run.run_id)
        log.info(
            "complexity_analysis_started",
            tasks_path=str(request.tasks_path),
            report_path=str(request.report_path),
            role=request.role,
        )
        try:
            return await self._run(run, request)
        except Exception as e:
            if run.state not in TERMINAL_PIPELINE_STATES:
                run.advance(PipelineState.FAILED, error_type=type(e).__name__)
            raise
        finally:
            structlog.contextvars.unbind_contextvars("run_id")

    async def _run(self, run: PipelineRun, request: AnalysisRequest) -> AnalysisOutcome:
        # LOAD_INPUT
        tasks_file: TasksFile = await self._stores.task_store.read_tasks(request.tasks_path)
        self._warn_dependency_issues(tasks_file.tasks)

        # FILTER
        run.advance(PipelineState.FILTER)
        selection = select_tasks(
            tasks_file.tasks,
            ids=request.ids,
            from_id=request.from_id,
            to_id=request.to_id,
        )
        ctx = PipelineContext(
            request=request,
            tasks=tuple(tasks_file.tasks),
            selection=selection,
        )
        log.info(
            "tasks_selected",
            filter_mode=selection.filter_mode,
            selected=len(selection.tasks),
            skipped=selection.skipped_count,
            total=selection.original_task_count,
        )

        if selection.is_empty:
            prior = await self._stores.report_store.load_report(request.report_path)
            if prior is not None:
                return self._short_circuit(run, ctx.with_prior(prior))

        # LOAD_EXISTING_REPORT
        run.advance(PipelineState.LOAD_EXISTING_REPORT)
        ctx = ctx.with_prior(
            await self._stores.report_store.load_report(request.report_path)
        )

        if selection.is_empty:
            return await self._persist(run, ctx, [], missing_ids=[], unexpected_ids=[])

        # COMPILE_PROMPT
        run.advance(PipelineState.COMPILE_PROMPT)
        prompt = build_complexity_prompt(selection.tasks, ctx.mode)

        # GENERATE
        run.advance(PipelineState.GENERATE)
        result = await self._generate(ctx, prompt)

        # PARSE
        run.advance(PipelineState.PARSE)
        parsed = parse_complexity_response(result.text)

        # RECONCILE
        run.advance(PipelineState.RECONCILE)
        reconciled = reconcile_entries(selection.tasks, parsed)

        return await self._persist(
            run,
            ctx,
            reconciled.entries,
            missing_ids=reconciled.missing_ids,
            unexpected_ids=reconciled.unexpected_ids,
            telemetry=result.telemetry,
        )

    def _warn_dependency_issues(self, tasks: Sequence[Task]) -> None:
        result = validate_dependencies(tasks)
        if result.cycles:
            log.warning("dependency_cycles_detected", cycles=result.cycles)
        if result.dangling:
            log.warning(
                "dangling_dependencies_detected",
                dangling=[f"{d.node_id} -> {d.missing_id}" for d in result.dangling],
            )

    def _short_circuit(self, run: PipelineRun, ctx: PipelineContext) -> AnalysisOutcome:
        run.advance(PipelineState.SHORT_CIRCUIT_EMPTY)
        run.advance(PipelineState.DONE_NOCHANGE)
        prior = ctx.prior_report
        log.info(
            "complexity_analysis_nochange",
            message="没有需要分析的活跃任务，保留现有报告",
            existing_entries=len(prior.complexity_analysis) if prior else 0,
        )
        return AnalysisOutcome(
            run_id=run.run_id,
            state=PipelineState.DONE_NOCHANGE,
            report=prior,
            selection=ctx.selection,
            previous_entry_count=len(ctx.prior_index),
        )

    async def _generate(self, ctx: PipelineContext, prompt: str) -> GenerationResult:
        role = ctx.request.role
        log.info(
            "generation_requested",
            role=role,
            mode=ctx.mode.value,
            task_count=len(ctx.selection.tasks),
        )
        try:
            raw = await self._generator.generate_text(
                prompt,
                system_prompt=SYSTEM_PROMPT,
                role=role,
                output_format="json",
            )
        except ProviderError as e:
            if e.kind == ErrorKind.AUTH:
                log.error("auth_remediation_hint", hint=AUTH_REMEDIATION_HINT)
            raise

        result = GenerationResult.from_raw(raw)
        if result.telemetry is not None:
            log.info("generation_telemetry", **result.telemetry.telemetry_fields())
        return result

    async def _persist(
        self,
        run: PipelineRun,
        ctx: PipelineContext,
        entries: list[ComplexityAnalysisEntry],
        *,
        missing_ids: list[int],
        unexpected_ids: list[int],
        telemetry: ModelCallResult | None = None,
    ) -> AnalysisOutcome:
        """在报告锁内重新读取最新报告、合并并原子写入"""
        report_store = self._stores.report_store
        report_path = ctx.request.report_path

        async with report_store.lock(report_path):
            if entries:
                # MERGE
                run.advance(PipelineState.MERGE)
            latest = await report_store.load_report(report_path)
            ctx = ctx.with_prior(latest)
            merged = merge_complexity_entries(entries, ctx.prior_report)
            reanalyzed = [e.task_id for e in entries if e.task_id in ctx.prior_index]

            # PERSIST
            run.advance(PipelineState.PERSIST)
            report = build_report(
                merged,
                tasks_analyzed=len(ctx.selection.tasks),
                total_tasks=ctx.selection.original_task_count,
                threshold_score=ctx.request.threshold_score,
                project_name=ctx.request.project_name,
                used_research=ctx.request.use_research,
            )
            await report_store.save_report(report_path, report)

        run.advance(PipelineState.DONE)
        summary = summarize_complexity(entries)
        log.info(
            "complexity_analysis_completed",
            analyzed=summary.total,
            high=summary.high,
            medium=summary.medium,
            low=summary.low,
            previous_entries=len(ctx.prior_index),
            report_entries=len(merged),
        )
        return AnalysisOutcome(
            run_id=run.run_id,
            state=PipelineState.DONE,
            report=report,
            selection=ctx.selection,
            previous_entry_count=len(ctx.prior_index),
            reanalyzed_ids=reanalyzed,
            missing_ids=missing_ids,
            unexpected_ids=unexpected_ids,
            telemetry=telemetry,
            summary=summary,
        )
