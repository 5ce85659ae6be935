"""
日志工具 - 发布过程输出门面

封装 Rich Console：终端输出带阶段标记，错误写到 stderr，
可选同时追加到日志文件（带完整日期）。运行期间的警告会被计数，
发布结束时汇总输出。
"""

import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, TextIO, Union

from rich.console import Console
from rich.markup import escape


class OutputLevel:
    """输出级别常量"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogStage:
    """发布阶段标记"""
    INIT = "INIT"
    VALIDATE = "VALIDATE"
    COLLECT = "COLLECT"
    LAYOUT = "LAYOUT"
    STAGE = "STAGE"
    ARCHIVE = "ARCHIVE"
    CHECKSUM = "CHECKSUM"
    SOURCE = "SOURCE"
    SIGN = "SIGN"
    DONE = "DONE"


_LEVEL_ORDER = {
    OutputLevel.DEBUG: 0,
    OutputLevel.INFO: 1,
    OutputLevel.SUCCESS: 1,
    OutputLevel.WARNING: 2,
    OutputLevel.ERROR: 3,
}

_LEVEL_STYLES = {
    OutputLevel.DEBUG: "dim",
    OutputLevel.INFO: "default",
    OutputLevel.SUCCESS: "green",
    OutputLevel.WARNING: "yellow",
    OutputLevel.ERROR: "red bold",
}

# 外部工具阶段用不同颜色，便于在长输出中定位 git/gpg 的问题
_STAGE_STYLES = {
    LogStage.SOURCE: "magenta",
    LogStage.SIGN: "magenta",
    LogStage.DONE: "green",
}

_STAGE_WIDTH = max(len(name) for name in vars(LogStage) if name.isupper())


class OutputFacade:
    """输出门面"""

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self._lock = threading.RLock()
        self._file_handle: Optional[TextIO] = None
        self._level = OutputLevel.INFO
        self._counts: Dict[str, int] = {OutputLevel.WARNING: 0, OutputLevel.ERROR: 0}

        # file=None 时 rich 在每次输出时读取 sys.stdout，测试中的输出重定向同样生效
        self._console = Console(file=stdout, highlight=False, soft_wrap=True)
        self._error_console = Console(file=stderr or sys.stderr, highlight=False, soft_wrap=True)

    def _enabled(self, level: str) -> bool:
        return _LEVEL_ORDER.get(level, 1) >= _LEVEL_ORDER.get(self._level, 1)

    @staticmethod
    def _stage_markup(stage: Optional[str]) -> str:
        if not stage:
            return " " * (_STAGE_WIDTH + 2)
        style = _STAGE_STYLES.get(stage, "cyan")
        return f"[{style}]{stage:<{_STAGE_WIDTH}}[/{style}]  "

    def emit(self, message: str, level: str, stage: Optional[str] = None) -> None:
        with self._lock:
            if level in self._counts:
                self._counts[level] += 1

            if self._enabled(level):
                timestamp = datetime.now().strftime("%H:%M:%S")
                line = f"[dim]{timestamp}[/dim] {self._stage_markup(stage)}{escape(message)}"
                if level == OutputLevel.ERROR:
                    self._error_console.print(line, style=_LEVEL_STYLES[level])
                else:
                    self._console.print(line, style=_LEVEL_STYLES.get(level, "default"))

            # 日志文件记录所有级别，不受终端级别限制
            if self._file_handle:
                stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
                stage_part = f" [{stage}]" if stage else ""
                self._file_handle.write(f"[{stamp}] [{level}]{stage_part} {message}\n")
                self._file_handle.flush()

    def set_level(self, level: str) -> None:
        with self._lock:
            if level in _LEVEL_ORDER:
                self._level = level

    def set_log_file(self, file_path: Union[str, Path]) -> None:
        """设置日志文件（追加模式）"""
        with self._lock:
            self.close()
            log_path = Path(file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_path, 'a', encoding='utf-8')

    def count(self, level: str) -> int:
        return self._counts.get(level, 0)

    def reset_counts(self) -> None:
        with self._lock:
            for level in self._counts:
                self._counts[level] = 0

    def close(self) -> None:
        with self._lock:
            if self._file_handle:
                self._file_handle.close()
                self._file_handle = None


_output_facade: Optional[OutputFacade] = None


def get_output_facade() -> OutputFacade:
    """获取全局输出门面实例"""
    global _output_facade
    if _output_facade is None:
        _output_facade = OutputFacade()
    return _output_facade


def debug(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.DEBUG, stage)


def info(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.INFO, stage)


def success(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.SUCCESS, stage)


def warning(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.WARNING, stage)


def error(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.ERROR, stage)


def set_log_level(level: str) -> None:
    get_output_facade().set_level(level)


def set_log_file(file_path: Union[str, Path]) -> None:
    get_output_facade().set_log_file(file_path)


def close_logger() -> None:
    """关闭日志文件"""
    global _output_facade
    if _output_facade:
        _output_facade.close()
        _output_facade = None


class StageLogger:
    """绑定固定阶段的日志器"""

    def __init__(self, stage: str):
        self.stage = stage

    def debug(self, message: str) -> None:
        debug(message, self.stage)

    def info(self, message: str) -> None:
        info(message, self.stage)

    def success(self, message: str) -> None:
        success(message, self.stage)

    def warning(self, message: str) -> None:
        warning(message, self.stage)

    def error(self, message: str) -> None:
        error(message, self.stage)


def get_stage_logger(stage: str) -> StageLogger:
    return StageLogger(stage)


def configure_logging(level: str = OutputLevel.INFO, log_file: Optional[Union[str, Path]] = None) -> None:
    """配置日志系统"""
    set_log_level(level)
    if log_file:
        set_log_file(log_file)


import atexit
atexit.register(close_logger)
