"""CLI 入口模块 -- python -m taskforge.analyzer <command>

支持的命令：
  analyze        分析任务复杂度并更新报告
  validate-deps  检查循环依赖与悬空依赖
  parse-id       解析层级任务标识符
"""

import argparse
import asyncio
import json
import sys

import structlog
from taskforge.core.config import get_report_path, get_tasks_path
from taskforge.core.exceptions import CoreError
from taskforge.core.graph import validate_dependencies
from taskforge.core.models import COMPLEXITY_MODE_OPTIONS, PipelineState, parse_task_id
from taskforge.core.report import HIGH_COMPLEXITY_MIN, MEDIUM_COMPLEXITY_MIN
from taskforge.core.store import create_store_group
from taskforge.provider import (
    AliasRegistry,
    ErrorKind,
    FallbackManager,
    LiteLLMClient,
    ProviderError,
    load_provider_config,
)

from .config import load_analysis_config
from .exceptions import AnalysisError
from .logging_config import setup_logging
from .services.complexity_service import (
    AUTH_REMEDIATION_HINT,
    AnalysisOutcome,
    AnalysisRequest,
    ComplexityAnalysisService,
)
from .services.llm_service import LLMService

log = structlog.get_logger()


def build_llm_service() -> LLMService:
    """按环境变量组装 LLMService（LiteLLMClient + FallbackManager）"""
    provider_config = load_provider_config()
    client = LiteLLMClient(
        api_base=provider_config.api_base,
        api_key=provider_config.api_key.get_secret_value(),
        timeout_s=provider_config.timeout_s,
    )
    registry = AliasRegistry.from_config(provider_config)
    log.info(
        "llm_service_initialized",
        main_model=provider_config.main_model,
        research_model=provider_config.research_model,
        fallback_model=provider_config.fallback_model or None,
        timeout_s=provider_config.timeout_s,
    )
    return LLMService(FallbackManager(client, registry))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskforge",
        description="任务依赖图校验与复杂度分析",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="分析任务复杂度并更新报告")
    analyze.add_argument("-f", "--file", help="任务文件路径（默认 tasks/tasks.json）")
    analyze.add_argument(
        "-o", "--output", help="报告输出路径（默认 scripts/task-complexity-report.json）"
    )
    analyze.add_argument("-t", "--threshold", type=float, help="扩展阈值 1-10")
    analyze.add_argument("-r", "--research", action="store_true", help="使用 research 角色")
    analyze.add_argument("-i", "--id", dest="ids", help="逗号分隔的任务 ID（优先于区间）")
    analyze.add_argument("--from", dest="from_id", type=int, help="区间起点（含）")
    analyze.add_argument("--to", dest="to_id", type=int, help="区间终点（含）")
    analyze.add_argument(
        "-m",
        "--mode",
        choices=[m.value for m in COMPLEXITY_MODE_OPTIONS],
        help="prompt 档位（默认 balanced）",
    )
    analyze.add_argument("--project-name", help="写入报告 meta 的项目名")

    validate = sub.add_parser("validate-deps", help="检查循环依赖与悬空依赖")
    validate.add_argument("-f", "--file", help="任务文件路径（默认 tasks/tasks.json）")

    parse_id = sub.add_parser("parse-id", help="解析层级任务标识符")
    parse_id.add_argument("task_id", help="任务标识符，如 5.3.1")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI 主入口，返回进程退出码"""
    args = build_parser().parse_args(argv)
    setup_logging()

    if args.command == "analyze":
        return asyncio.run(run_analyze(args))
    if args.command == "validate-deps":
        return asyncio.run(run_validate_deps(args))
    return run_parse_id(args)


async def run_analyze(args: argparse.Namespace, llm_service=None) -> int:
    """执行复杂度分析"""
    config = load_analysis_config()
    request = AnalysisRequest(
        tasks_path=args.file or get_tasks_path(),
        report_path=args.output or get_report_path(),
        ids=args.ids,
        from_id=args.from_id,
        to_id=args.to_id,
        use_research=args.research,
        mode=args.mode or config.complexity_mode,
        threshold_score=args.threshold if args.threshold is not None else config.threshold_score,
        project_name=args.project_name or config.project_name,
    )

    service = ComplexityAnalysisService(
        create_store_group(),
        llm_service or build_llm_service(),
    )
    try:
        outcome = await service.analyze(request)
    except ProviderError as e:
        print(f"错误: {e}", file=sys.stderr)
        if e.kind == ErrorKind.AUTH:
            print(AUTH_REMEDIATION_HINT, file=sys.stderr)
        return 1
    except (CoreError, AnalysisError) as e:
        print(f"错误: {e}", file=sys.stderr)
        return 1

    print_summary(outcome, request)
    return 0


def print_summary(outcome: AnalysisOutcome, request: AnalysisRequest) -> None:
    selection = outcome.selection
    if outcome.state == PipelineState.DONE_NOCHANGE:
        print("没有需要分析的活跃任务，报告未修改。")
        print(f"报告: {request.report_path}")
        return

    summary = outcome.summary
    print(f"复杂度分析完成，报告已写入 {request.report_path}")
    print(f"  筛选模式: {selection.filter_mode}")
    print(f"  任务总数: {selection.original_task_count}")
    print(f"  本次分析: {summary.total}（跳过 {selection.skipped_count}）")
    high, medium = f"{HIGH_COMPLEXITY_MIN:g}", f"{MEDIUM_COMPLEXITY_MIN:g}"
    print(f"  高复杂度 (>= {high}): {summary.high}")
    print(f"  中复杂度 ({medium} 至 < {high}): {summary.medium}")
    print(f"  低复杂度 (< {medium}): {summary.low}")
    if outcome.report is not None:
        print(
            f"  报告条目: {outcome.previous_entry_count} -> "
            f"{len(outcome.report.complexity_analysis)}"
        )
    print(f"  research 角色: {'是' if request.use_research else '否'}")
    if outcome.telemetry is not None:
        t = outcome.telemetry.telemetry_fields()
        cost = "不可用" if t["cost_unavailable"] else f"${t['cost_usd']:.4f}"
        fallback = "（降级）" if t["is_fallback"] else ""
        print(f"  模型: {t['model_name']}{fallback}  tokens: {t['total_tokens']}  成本: {cost}")
    if selection.missing_ids:
        print(f"  未找到或非活跃的 ID: {', '.join(map(str, selection.missing_ids))}")
    if outcome.missing_ids:
        print(f"  已补默认分析的 ID: {', '.join(map(str, outcome.missing_ids))}")


async def run_validate_deps(args: argparse.Namespace) -> int:
    """校验依赖关系，有循环或悬空依赖时返回 1"""
    store_group = create_store_group()
    path = args.file or get_tasks_path()
    try:
        tasks_file = await store_group.task_store.read_tasks(path)
    except CoreError as e:
        print(f"错误: {e}", file=sys.stderr)
        return 1

    result = validate_dependencies(tasks_file.tasks)
    if result.is_valid:
        print(f"依赖关系有效（{len(tasks_file.tasks)} 个任务）")
        return 0

    if result.cycles:
        print("循环依赖:")
        for cycle in result.cycles:
            print(f"  {cycle}")
    if result.dangling:
        print("悬空依赖:")
        for d in result.dangling:
            print(f"  {d.node_id} -> {d.missing_id}（不存在）")
    return 1


def run_parse_id(args: argparse.Namespace) -> int:
    """打印标识符解析结果，非法标识符返回 1"""
    identifier = parse_task_id(args.task_id)
    print(json.dumps(identifier.model_dump(), ensure_ascii=False, indent=2))
    return 0 if identifier.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
