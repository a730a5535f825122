"""任务状态报告

每个同步任务或清理动作拥有一个 JobStatus 句柄，句柄依次经历
running -> succeeded / failed。状态变化通过 sink 回调输出，
多个工作线程共享同一个 StatusReporter，回调在锁内串行执行。
"""

import threading
from enum import Enum
from typing import Callable, List, Optional, Tuple


class StatusState(Enum):
    """状态句柄所处阶段"""
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


StatusSink = Callable[[StatusState, str], None]


def _discard(state: StatusState, message: str) -> None:
    pass


class JobStatus:
    """单个任务的状态句柄"""

    def __init__(self, reporter: 'StatusReporter', message: str):
        self._reporter = reporter
        self.message = message
        self.state: Optional[StatusState] = None

    def start(self) -> 'JobStatus':
        self._emit(StatusState.RUNNING, self.message)
        return self

    def succeed(self, message: Optional[str] = None) -> None:
        self._emit(StatusState.SUCCEEDED, message or self.message)

    def fail(self, message: str) -> None:
        self._emit(StatusState.FAILED, message)

    def _emit(self, state: StatusState, message: str) -> None:
        # 终态之后的更新被忽略
        if self.state in (StatusState.SUCCEEDED, StatusState.FAILED):
            return
        self.state = state
        self._reporter.emit(state, message)


class StatusReporter:
    """状态报告器

    Args:
        sink: 接收 (状态, 消息) 的回调；默认丢弃
    """

    def __init__(self, sink: Optional[StatusSink] = None):
        self._sink = sink or _discard
        self._lock = threading.Lock()
        self.history: List[Tuple[StatusState, str]] = []

    def handle(self, message: str) -> JobStatus:
        """创建并启动一个状态句柄"""
        return JobStatus(self, message).start()

    def emit(self, state: StatusState, message: str) -> None:
        with self._lock:
            self.history.append((state, message))
            self._sink(state, message)
