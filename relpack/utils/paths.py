"""
路径工具

分发目录内部统一使用 PurePosixPath 表示相对路径，与构建所在平台无关。
"""

import os
from pathlib import Path, PurePosixPath
from typing import Union

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def ensure_directory(path: Union[str, Path]) -> Path:
    """创建目录（含父目录）并返回其路径"""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def safe_path_join(*parts: Union[str, PurePosixPath]) -> PurePosixPath:
    """拼接分发目录内的相对路径

    反斜杠视为分隔符；空的部分被忽略。

    Raises:
        ValueError: 某一部分是绝对路径或包含 '..'
    """
    result = PurePosixPath()

    for part in parts:
        part_path = PurePosixPath(str(part).replace('\\', '/'))

        if part_path.is_absolute():
            raise ValueError(f"分发目录内不允许绝对路径: {part}")
        if '..' in part_path.parts:
            raise ValueError(f"分发目录内不允许 '..': {part}")

        result /= part_path

    return result


def temporary_sibling(path: Path) -> Path:
    """目标文件同目录下的临时文件路径

    写完临时文件后用 os.replace 移到最终位置，失败的运行不会留下残缺文件。
    """
    return path.with_name(f".{path.name}.{os.getpid()}.tmp")


def remove_if_exists(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def format_size(size_bytes: int) -> str:
    """人类可读的文件大小，例如 ``1.5 MB``"""
    size = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024.0:
            break
        size /= 1024.0
    else:
        unit = _SIZE_UNITS[-1]

    if unit == "B":
        return f"{int(size)} B"
    return f"{size:.1f} {unit}"
