"""
GPG 签名

调用 gpg 命令为归档生成分离签名。签名密钥未设置时在校验阶段就失败，
不会等到其他耗时步骤完成之后。
"""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..config.schema import SIGNING_KEY_PROPERTY, SigningModel
from ..utils.logging import debug, info, LogStage
from ..utils.paths import remove_if_exists, temporary_sibling
from .build_context import ExternalToolError, MissingArtifactError, PreconditionError
from .source import find_executable


@dataclass(frozen=True)
class SignatureRecord:
    """签名记录"""
    target: Path
    signature: Path


def require_signing_key(key_name: Optional[str]) -> str:
    """检查签名密钥是否已设置

    Raises:
        PreconditionError: 密钥未设置
    """
    if not key_name:
        raise PreconditionError(
            f"GPG 签名需要设置 '{SIGNING_KEY_PROPERTY}'：在配置文件的 signing.key_name 中指定，"
            "或使用 --signing-key / 环境变量 RELPACK_SIGNING_KEY"
        )
    return key_name


class Signer:
    """GPG 分离签名器"""

    def __init__(self, key_name: Optional[str], gpg: str = "gpg", use_agent: bool = True, armor: bool = True):
        self.key_name = key_name
        self.gpg = gpg
        self.use_agent = use_agent
        self.armor = armor

    @classmethod
    def from_config(cls, signing: SigningModel) -> 'Signer':
        return cls(signing.key_name, signing.gpg, signing.use_agent, signing.armor)

    @property
    def extension(self) -> str:
        return "asc" if self.armor else "sig"

    def check_preconditions(self) -> None:
        """Raises: PreconditionError: 密钥未设置或找不到 gpg"""
        require_signing_key(self.key_name)
        if find_executable(self.gpg) is None:
            raise PreconditionError(f"找不到 gpg 可执行文件: {self.gpg}")

    def signature_path(self, target: Path) -> Path:
        return target.with_name(f"{target.name}.{self.extension}")

    def build_command(self, target: Path, output: Path) -> List[str]:
        command = [self.gpg, "--batch", "--yes"]
        if self.use_agent:
            command.append("--use-agent")
        command += ["--local-user", require_signing_key(self.key_name)]
        if self.armor:
            command.append("--armor")
        command += ["--output", str(output), "--detach-sign", str(target)]
        return command

    def sign(self, target: Path) -> SignatureRecord:
        """为文件生成分离签名

        Raises:
            PreconditionError: 密钥未设置
            MissingArtifactError: 待签名文件不存在
            ExternalToolError: gpg 以非零状态退出（不会留下签名文件）
        """
        target = Path(target)
        require_signing_key(self.key_name)
        if not target.is_file():
            raise MissingArtifactError(f"待签名文件不存在: {target}")

        signature = self.signature_path(target)
        tmp_path = temporary_sibling(signature)
        command = self.build_command(target, tmp_path)

        debug(f"执行: {' '.join(command)}", stage=LogStage.SIGN)
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            remove_if_exists(tmp_path)
            raise ExternalToolError("gpg", command, -1, str(e)) from e

        if result.returncode != 0 or not tmp_path.is_file():
            remove_if_exists(tmp_path)
            raise ExternalToolError("gpg", command, result.returncode, result.stderr or result.stdout)

        os.replace(tmp_path, signature)
        info(f"已签名: {target.name} -> {signature.name}", stage=LogStage.SIGN)
        return SignatureRecord(target=target, signature=signature)
