"""
YAML 流程加载器

文件格式::

    steps:
      - id: USERNAME_ENTRY
        name: Enter Username
        actions:
          - id: USER_01
            name: Detect Other User Option
            kind: locate_text
            expected_text: Other user
            alternative_texts: [Username, Email]
          - id: USER_03
            name: Type Username
            kind: type
            text: ${username}

字符串中的 ``${name}`` 通过 ParameterSource 解析。结构错误一律抛出
PlanError，错误信息带上出错位置。
"""
from __future__ import annotations

import dataclasses
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ...core.constants import ActionKind
from ...core.errors import PlanError
from ...core.logger import logger
from .models import PARAMS_BY_KIND, Action, Step
from .plan import ParameterSource

_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

# 动作层面的公共字段，其余字段都属于参数
_ACTION_FIELDS = ("id", "name", "kind", "optional", "max_retries")


class PlanLoader:
    """从 YAML 构建步骤列表"""

    def __init__(self, params: Optional[ParameterSource] = None, *, default_max_retries: int = 3):
        self._params = params or ParameterSource()
        self._default_max_retries = default_max_retries
        self._log = logger.bind(module="PlanLoader")

    def load(self, path: Union[str, Path]) -> List[Step]:
        file_path = Path(path)
        if not file_path.exists():
            raise PlanError(f"流程文件不存在: {file_path}")
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise PlanError(f"流程文件解析失败: {file_path}: {e}") from e

        steps = self.parse(config)
        self._log.info(f"流程已加载: {file_path} ({len(steps)} 个步骤)")
        return steps

    def loads(self, text: str) -> List[Step]:
        try:
            config = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise PlanError(f"流程解析失败: {e}") from e
        return self.parse(config)

    def parse(self, config: Any) -> List[Step]:
        if not isinstance(config, dict):
            raise PlanError("流程格式错误（顶层必须是 dict）")
        raw_steps = config.get("steps")
        if not isinstance(raw_steps, list) or not raw_steps:
            raise PlanError("steps 必须是非空列表")

        steps: List[Step] = []
        seen = set()
        for i, raw in enumerate(raw_steps):
            step = self._parse_step(raw, f"steps[{i}]")
            if step.step_id in seen:
                raise PlanError(f"步骤 ID 重复: {step.step_id}")
            seen.add(step.step_id)
            steps.append(step)
        return steps

    def _parse_step(self, raw: Any, where: str) -> Step:
        if not isinstance(raw, dict):
            raise PlanError(f"{where} 必须是 dict")
        step_id = raw.get("id")
        if not step_id:
            raise PlanError(f"{where} 缺少 'id'")
        raw_actions = raw.get("actions")
        if not isinstance(raw_actions, list) or not raw_actions:
            raise PlanError(f"{where}.actions 必须是非空列表")
        actions = [
            self._parse_action(a, f"{where}.actions[{j}]")
            for j, a in enumerate(raw_actions)
        ]
        return Step(str(step_id), str(raw.get("name") or step_id), actions)

    def _parse_action(self, raw: Any, where: str) -> Action:
        if not isinstance(raw, dict):
            raise PlanError(f"{where} 必须是 dict")
        action_id = raw.get("id")
        if not action_id:
            raise PlanError(f"{where} 缺少 'id'")
        try:
            kind = ActionKind(raw.get("kind"))
        except ValueError:
            raise PlanError(f"{where} 动作类型未知: {raw.get('kind')!r}") from None

        params_cls = PARAMS_BY_KIND[kind]
        allowed = {f.name for f in dataclasses.fields(params_cls)}
        fields: Dict[str, Any] = {}
        for key, value in raw.items():
            if key in _ACTION_FIELDS:
                continue
            if key not in allowed:
                raise PlanError(f"{where} 不支持的参数 '{key}'（{kind.value}）")
            fields[key] = self._resolve(value)

        try:
            params = params_cls(**fields)
        except TypeError as e:
            raise PlanError(f"{where} 参数错误: {e}") from e

        max_retries = raw.get("max_retries", self._default_max_retries)
        if not isinstance(max_retries, int) or isinstance(max_retries, bool):
            raise PlanError(f"{where}.max_retries 必须是整数")
        optional = raw.get("optional", False)
        if not isinstance(optional, bool):
            raise PlanError(f"{where}.optional 必须是 true/false")
        return Action(
            str(action_id),
            str(raw.get("name") or action_id),
            params,
            optional=optional,
            max_retries=max_retries,
        )

    def _resolve(self, value: Any) -> Any:
        if isinstance(value, str):
            return _REF.sub(lambda m: self._params.get(m.group(1)), value)
        if isinstance(value, list):
            return [self._resolve(v) for v in value]
        return value
