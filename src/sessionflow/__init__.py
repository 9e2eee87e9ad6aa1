"""
sessionflow - 无人值守 VDI 登录流程引擎
"""
__version__ = "1.0.0"
