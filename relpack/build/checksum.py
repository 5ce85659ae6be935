"""
校验和工具

流式计算归档的 SHA-512 摘要，并写出与 sha512sum 兼容的 ``.sha512`` 文件。
所有需要校验和的归档都使用这里的实现。
"""

import hashlib
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..utils import get_stage_logger, LogStage
from ..utils.paths import temporary_sibling

DEFAULT_ALGORITHM = "sha512"
CHUNK_SIZE = 64 * 1024

logger = get_stage_logger(LogStage.CHECKSUM)

# "<hex> *<filename>"，星号表示二进制模式
_SIDECAR_LINE = re.compile(r'^(?P<digest>[0-9a-f]+) (?P<mode>[ *])(?P<name>.+)$')


class ChecksumFormatError(ValueError):
    """校验和文件格式错误"""
    pass


@dataclass(frozen=True)
class ChecksumRecord:
    """校验和记录"""
    file_name: str
    algorithm: str
    hex_digest: str
    path: Path

    def render(self) -> str:
        return f"{self.hex_digest} *{self.file_name}"


class ChecksumCalculator:
    """哈希计算器"""

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        self.algorithm = algorithm.lower()
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f"不支持的哈希算法: {algorithm}")

        self._hasher = hashlib.new(self.algorithm)

    def update(self, data: Union[bytes, str]) -> None:
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._hasher.update(data)

    def update_from_file(self, file_path: Path, chunk_size: int = CHUNK_SIZE) -> None:
        """从文件分块更新哈希"""
        with open(file_path, 'rb') as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                self._hasher.update(chunk)

    def hexdigest(self) -> str:
        """小写十六进制摘要"""
        return self._hasher.hexdigest()

    @classmethod
    def hash_file(cls, file_path: Path, algorithm: str = DEFAULT_ALGORITHM) -> str:
        calculator = cls(algorithm)
        calculator.update_from_file(file_path)
        return calculator.hexdigest()


def sidecar_path(archive: Path, algorithm: str = DEFAULT_ALGORITHM) -> Path:
    return archive.with_name(f"{archive.name}.{algorithm}")


def write_checksum_file(archive: Path, algorithm: str = DEFAULT_ALGORITHM) -> ChecksumRecord:
    """计算归档摘要并写出同目录的校验和文件

    文件内容为 ``<hex> *<文件名>``。
    """
    archive = Path(archive)
    digest = ChecksumCalculator.hash_file(archive, algorithm)
    record = ChecksumRecord(
        file_name=archive.name,
        algorithm=algorithm,
        hex_digest=digest,
        path=sidecar_path(archive, algorithm),
    )
    tmp_path = temporary_sibling(record.path)
    tmp_path.write_text(record.render(), encoding='utf-8')
    os.replace(tmp_path, record.path)

    logger.info(f"{algorithm}: {archive.name} -> {record.path.name}")
    logger.debug(f"{archive.name} {algorithm}={digest[:16]}...")
    return record


def read_checksum_file(sidecar: Path) -> ChecksumRecord:
    """解析校验和文件

    Raises:
        ChecksumFormatError: 文件格式不正确
    """
    sidecar = Path(sidecar)
    algorithm = sidecar.suffix.lstrip('.').lower() or DEFAULT_ALGORITHM
    content = sidecar.read_text(encoding='utf-8').strip()

    match = _SIDECAR_LINE.match(content)
    if not match or '\n' in content:
        raise ChecksumFormatError(f"校验和文件格式不正确: {sidecar}")

    try:
        digest_size = hashlib.new(algorithm).digest_size
    except ValueError:
        digest_size = 0
    # shake_* 摘要长度可变，无法从文件名确定
    if digest_size == 0:
        raise ChecksumFormatError(f"无法从文件名识别摘要算法 '{algorithm}': {sidecar}")

    digest = match.group('digest')
    expected_len = digest_size * 2
    if len(digest) != expected_len:
        raise ChecksumFormatError(f"{algorithm} 摘要长度应为 {expected_len}，实际为 {len(digest)}: {sidecar}")

    return ChecksumRecord(
        file_name=match.group('name'),
        algorithm=algorithm,
        hex_digest=digest,
        path=sidecar,
    )


def verify_checksum_file(sidecar: Path) -> bool:
    """重新计算归档摘要并与校验和文件比对

    Raises:
        ChecksumFormatError: 文件格式不正确
        FileNotFoundError: 被校验的归档不存在
    """
    record = read_checksum_file(sidecar)
    archive = Path(sidecar).with_name(record.file_name)
    if not archive.is_file():
        raise FileNotFoundError(f"归档不存在: {archive}")

    actual = ChecksumCalculator.hash_file(archive, record.algorithm)
    if actual != record.hex_digest:
        logger.error(f"校验和不匹配: {archive.name}")
        return False
    return True
