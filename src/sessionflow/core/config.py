"""
核心配置模块
"""
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(
        env_prefix="SESSIONFLOW_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # 输出根目录（日志、截图证据均位于其下）
    output_root: str = Field(default="./output")

    # 日志
    log_level: str = Field(default="INFO")
    log_dir_name: str = Field(default="logs")
    log_retention_days: int = Field(default=3)
    log_console_enabled: bool = Field(default=True)
    log_global_file_enabled: bool = Field(default=False)

    # 时区（审计事件时间戳）
    timezone: str = Field(default="UTC")

    # 运行时间预算：硬上限 180 秒，预留 10 秒安全余量
    run_time_limit_sec: float = Field(default=180.0)
    run_safety_margin_sec: float = Field(default=10.0)

    # 重试
    action_max_retries: int = Field(default=3)
    retry_backoff_sec: float = Field(default=1.0)

    # 截图缓存
    screenshot_cache_ttl_ms: int = Field(default=2000)

    # OCR
    ocr_min_confidence: float = Field(default=0.7)
    ocr_engine_min_confidence: float = Field(default=0.5)
    paddle_ocr_lang: str = Field(default="en")
    ocr_model_dir: str = Field(default="./models/ocr")

    # 截图 / 输入
    capture_monitor: int = Field(default=1)
    input_pause_sec: float = Field(default=0.1)
    window_backend: str = Field(default="placeholder")  # placeholder / desktop

    # 在识别类动作开始前自动截图留证
    evidence_on_visual_actions: bool = Field(default=True)
    evidence_dir_name: str = Field(default="screenshots")

    # 凭据（通过环境变量或 .env 注入）
    username: str = Field(default="")
    pin: str = Field(default="")
    totp_secret: str = Field(default="")
    # 额外命名参数，如 SESSIONFLOW_PARAMS='{"domain": "corp"}'
    params: Dict[str, str] = Field(default_factory=dict)

    # TOTP
    totp_digits: int = Field(default=6)
    totp_interval: int = Field(default=30)

    # 自定义流程文件（YAML），为空时使用内置认证流程
    plan_path: Optional[str] = Field(default=None)

    @property
    def run_budget_sec(self) -> float:
        """可用运行预算（硬上限减去安全余量）"""
        return max(0.0, self.run_time_limit_sec - self.run_safety_margin_sec)


# 全局配置实例
settings = Settings()
