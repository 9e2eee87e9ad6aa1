"""PaddleOCR 引擎管理（懒加载单例）。"""
from __future__ import annotations

import os
import threading
from pathlib import Path

from ...core.config import settings
from ...core.errors import RecognitionError
from ...core.logger import logger

_ocr_instance = None
_ocr_lock = threading.Lock()


def _prepare_model_env() -> None:
    """在导入 PaddleOCR 之前设置环境变量，使用本地模型目录。"""
    ocr_dir = str(Path(settings.ocr_model_dir).resolve())
    os.environ.setdefault("PADDLEX_HOME", ocr_dir)
    os.environ.setdefault("PPOCR_HOME", ocr_dir)
    os.environ.setdefault("PADDLE_PDX_DISABLE_MODEL_SOURCE_CHECK", "True")


def get_ocr_engine():
    """获取 PaddleOCR 单例。

    首次调用时初始化引擎（约 3-5 秒），后续调用直接返回缓存实例。
    引擎初始化失败属于后端故障，以 RecognitionError 抛出。
    """
    global _ocr_instance
    if _ocr_instance is not None:
        return _ocr_instance

    with _ocr_lock:
        if _ocr_instance is not None:
            return _ocr_instance

        _prepare_model_env()
        logger.info("正在初始化 PaddleOCR (lang={})...", settings.paddle_ocr_lang)
        try:
            from paddleocr import PaddleOCR  # noqa: delay import
        except ImportError as e:
            logger.error(f"PaddleOCR 导入失败，请检查依赖: {e}")
            raise RecognitionError(f"PaddleOCR 导入失败: {e}") from e

        try:
            _ocr_instance = PaddleOCR(
                use_textline_orientation=False,
                use_doc_orientation_classify=False,
                use_doc_unwarping=False,
                lang=settings.paddle_ocr_lang,
                device="cpu",
            )
        except Exception as e:
            logger.error(f"PaddleOCR 初始化失败: {e}")
            raise RecognitionError(f"PaddleOCR 初始化失败: {e}") from e
        logger.info("PaddleOCR 初始化完成")
        return _ocr_instance
