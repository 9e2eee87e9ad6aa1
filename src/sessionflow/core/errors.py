"""
异常定义

识别未命中不是异常，而是普通的否定结果（见 TextLocation.found）。
这里只定义配置错误和外部协作方的意外故障。
"""


class SessionFlowError(Exception):
    """基础异常"""
    pass


class ConfigurationError(SessionFlowError):
    """动作缺少必需参数（执行时发现）"""
    pass


class PlanError(SessionFlowError):
    """流程定义结构错误（构建时发现）"""
    pass


class AuditSinkError(SessionFlowError):
    """审计日志无法初始化，整个运行无法继续"""
    pass


class BackendError(SessionFlowError):
    """外部协作方（截图、识别、输入、窗口）意外故障"""
    pass


class CaptureError(BackendError):
    """截图异常"""
    pass


class RecognitionError(BackendError):
    """文字识别异常"""
    pass


class InputError(BackendError):
    """键鼠输入异常"""
    pass


class WindowError(BackendError):
    """窗口操作异常"""
    pass


class EvidenceError(SessionFlowError):
    """截图证据目录无法创建"""
    pass
