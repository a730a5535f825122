"""结构化日志

rz 的各个组件通过 get_logger("<组件名>") 取得日志记录器，事件名为简短的英文句子，
细节以关键字参数传入。底层是 stdlib logging + structlog 处理器链：

- 默认静默（NullHandler），不会干扰 rz init 等命令的标准输出
- rz --verbose 把 DEBUG 日志写到 stderr
- rz --log-dir DIR 把日志追加写入 DIR/rz.log

OperationScope 为一次 sync / upgrade 分配操作 ID，期间的所有日志都会带上它。
"""

import contextvars
import logging
import time
import uuid
from dataclasses import dataclass
from functools import partialmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

LOG_FILENAME = "rz.log"

_operation_id: contextvars.ContextVar[str] = contextvars.ContextVar("rz_operation_id", default="")


def current_operation_id() -> str:
    return _operation_id.get()


def set_operation_id(operation_id: str) -> contextvars.Token:
    return _operation_id.set(operation_id)


def clear_operation_id() -> None:
    _operation_id.set("")


def add_operation_id(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog 处理器：附加当前操作 ID"""
    operation_id = _operation_id.get()
    if operation_id:
        event_dict.setdefault("operation_id", operation_id)
    return event_dict


@dataclass
class LoggerConfig:
    """日志输出配置

    Attributes:
        log_dir: 写入 rz.log 的目录，None 表示不写文件
        level: 最低日志级别名
        json_output: True 时每行一个 JSON 对象
        console_output: True 时同时写到 stderr
    """
    log_dir: Optional[Path] = None
    level: str = "INFO"
    json_output: bool = False
    console_output: bool = False

    def build_handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []
        if self.console_output:
            handlers.append(logging.StreamHandler())
        if self.log_dir:
            directory = Path(self.log_dir)
            directory.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(directory / LOG_FILENAME, encoding="utf-8"))
        return handlers or [logging.NullHandler()]

    def renderer(self):
        if self.json_output:
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer(colors=False)


def _apply(config: LoggerConfig, force: bool) -> None:
    # 默认配置不替换 root logger 上已有的 handler
    logging.basicConfig(
        handlers=config.build_handlers(),
        level=logging.getLevelName(config.level.upper()),
        format="%(message)s",
        force=force,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_operation_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            config.renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # 模块级 logger 创建之后 CLI 仍可能重新配置
        cache_logger_on_first_use=False,
    )


class Logger:
    """组件日志记录器，包装一个 structlog BoundLogger"""

    def __init__(self, name: str = "rz", bound: Optional[Any] = None):
        self.name = name
        self.logger = bound if bound is not None else structlog.get_logger(name)

    def _log(self, level: str, event: str, **kwargs) -> None:
        getattr(self.logger, level)(event, **kwargs)

    debug = partialmethod(_log, "debug")
    info = partialmethod(_log, "info")
    warning = partialmethod(_log, "warning")
    error = partialmethod(_log, "error")

    def bind(self, **kwargs) -> 'Logger':
        """返回绑定了额外字段的新记录器"""
        return Logger(self.name, bound=self.logger.bind(**kwargs))


class OperationScope:
    """一次命令级操作的日志范围

    进入时记录 <name>_started；退出时记录 <name>_succeeded 或 <name>_failed
    以及耗时。异常不会被吞掉。退出后恢复进入前的操作 ID。
    """

    def __init__(
        self,
        operation_name: str,
        context: Optional[Dict[str, Any]] = None,
        logger: Optional[Logger] = None,
        operation_id: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.context = dict(context or {})
        self.logger = logger or get_logger("operation")
        self.operation_id = operation_id or uuid.uuid4().hex
        self.exception_occurred = False
        self.duration_ms: Optional[int] = None
        self._token: Optional[contextvars.Token] = None
        self._started = 0.0

    def __enter__(self) -> 'OperationScope':
        self._token = set_operation_id(self.operation_id)
        self._started = time.perf_counter()
        self.logger.info(f"{self.operation_name}_started", **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.duration_ms = int((time.perf_counter() - self._started) * 1000)
        fields = dict(self.context, duration_ms=self.duration_ms)

        if exc_type is None:
            self.logger.info(f"{self.operation_name}_succeeded", **fields)
        else:
            self.exception_occurred = True
            self.logger.error(
                f"{self.operation_name}_failed",
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                **fields,
            )

        if self._token is not None:
            _operation_id.reset(self._token)
            self._token = None
        return False


_configured = False


def get_logger(name: str = "rz") -> Logger:
    """取得组件日志记录器；首次调用时按默认（静默）配置初始化"""
    global _configured
    if not _configured:
        _apply(LoggerConfig(), force=False)
        _configured = True
    return Logger(name)


def configure_logger(config: LoggerConfig) -> None:
    """按 CLI 选项重新配置全局日志"""
    global _configured
    _apply(config, force=True)
    _configured = True
