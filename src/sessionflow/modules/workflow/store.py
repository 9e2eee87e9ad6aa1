"""
运行级数据仓库：前序动作写入，后续动作读取

值只允许几种封闭的类型，读取方按类型取值，类型不符时得到 None。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Union

from ...core.constants import ONE_TIME_CODE_KEY
from ..recognition.types import Point


@dataclass(frozen=True)
class LocationValue:
    point: Point


@dataclass(frozen=True)
class MatchedTextValue:
    text: str


@dataclass(frozen=True)
class OneTimeCodeValue:
    code: str


@dataclass(frozen=True)
class TextValue:
    text: str


StoredValue = Union[LocationValue, MatchedTextValue, OneTimeCodeValue, TextValue]


def location_key(action_id: str) -> str:
    return f"{action_id}_location"


def found_text_key(action_id: str) -> str:
    return f"{action_id}_foundText"


def screenshot_key(action_id: str) -> str:
    return f"{action_id}_screenshot"


class StepDataStore:
    """单次运行内的键值仓库；后写覆盖先写"""

    def __init__(self) -> None:
        self._data: Dict[str, StoredValue] = {}

    def put(self, key: str, value: StoredValue) -> None:
        if not isinstance(value, (LocationValue, MatchedTextValue, OneTimeCodeValue, TextValue)):
            raise TypeError(f"不支持的存储值类型: {type(value).__name__}")
        self._data[key] = value

    def get(self, key: str) -> Optional[StoredValue]:
        return self._data.get(key)

    def get_location(self, key: str) -> Optional[Point]:
        value = self._data.get(key)
        return value.point if isinstance(value, LocationValue) else None

    def get_text(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        if isinstance(value, (MatchedTextValue, TextValue)):
            return value.text
        return None

    def put_one_time_code(self, code: str) -> None:
        self.put(ONE_TIME_CODE_KEY, OneTimeCodeValue(code))

    def get_one_time_code(self) -> Optional[str]:
        value = self._data.get(ONE_TIME_CODE_KEY)
        return value.code if isinstance(value, OneTimeCodeValue) else None

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)
