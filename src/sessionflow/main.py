"""
命令行入口

用法：
  python -m sessionflow                    # 内置 VDI 登录流程
  python -m sessionflow --plan flow.yaml   # 自定义流程
  python -m sessionflow --output ./out --budget 120

退出码：0 全部步骤完成；1 有步骤失败或被跳过；2 运行无法启动。
凭据通过环境变量（SESSIONFLOW_USERNAME / SESSIONFLOW_PIN /
SESSIONFLOW_TOTP_SECRET）或 .env 注入。
"""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .core.config import Settings, settings
from .core.errors import SessionFlowError
from .core.logger import logger
from .modules.workflow.session import create_desktop_runner

EXIT_OK = 0
EXIT_INCOMPLETE = 1
EXIT_SETUP_FAILED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sessionflow",
        description="Unattended VDI sign-in workflow runner",
    )
    parser.add_argument("--plan", default=None, help="YAML 流程文件，缺省使用内置登录流程")
    parser.add_argument("--output", default=None, help="输出根目录（日志和截图）")
    parser.add_argument("--budget", type=float, default=None, help="可用运行预算（秒）")
    return parser


def apply_overrides(base: Settings, args: argparse.Namespace) -> Settings:
    update = {}
    if args.output:
        update["output_root"] = args.output
    if args.plan:
        update["plan_path"] = args.plan
    if args.budget is not None:
        # 命令行给出的是可用预算，不再额外扣除安全余量
        update["run_time_limit_sec"] = args.budget
        update["run_safety_margin_sec"] = 0.0
    return base.model_copy(update=update) if update else base


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = apply_overrides(settings, args)

    runner = None
    try:
        runner = create_desktop_runner(cfg)
        logger.info(f"[SessionFlow] 运行 {runner.session_id} 开始，预算 {cfg.run_budget_sec:g} 秒")
        report = runner.run()
    except SessionFlowError as e:
        logger.error(f"[SessionFlow] 运行无法启动: {e}")
        return EXIT_SETUP_FAILED
    finally:
        if runner is not None:
            runner.backend.close()

    if report.succeeded:
        logger.info(f"[SessionFlow] 登录流程完成 ({report.completed}/{report.total})")
        return EXIT_OK
    logger.error(
        f"[SessionFlow] 登录流程未完成 ({report.completed}/{report.total})"
        f" 步骤: {report.aborted_step_id or '-'} 动作: {report.aborted_action_id or '-'}"
        f" 错误: {report.error or '-'}"
    )
    return EXIT_INCOMPLETE


if __name__ == "__main__":
    sys.exit(main())
