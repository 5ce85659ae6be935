"""
GPG 签名单元测试

gpg 调用通过 mock 替换，不依赖本机密钥。
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from relpack.build.build_context import ExternalToolError, MissingArtifactError, PreconditionError
from relpack.build.signer import Signer, require_signing_key
from relpack.config.schema import SigningModel


@pytest.fixture
def archive(tmp_path) -> Path:
    path = tmp_path / "demo-1.0.0.tgz"
    path.write_bytes(b"archive")
    return path


class TestRequireSigningKey:
    """签名密钥检查测试"""

    def test_missing_key_message(self):
        """测试错误信息指出需要设置的属性"""
        for key in (None, ""):
            with pytest.raises(PreconditionError) as exc_info:
                require_signing_key(key)
            message = str(exc_info.value)
            assert "signing.key_name" in message
            assert "--signing-key" in message

    def test_key_present(self):
        assert require_signing_key("release@example.org") == "release@example.org"


class TestSigner:
    """Signer 测试"""

    def test_build_command(self, archive):
        signer = Signer("KEY")
        command = signer.build_command(archive, Path("out.asc"))
        assert command == [
            "gpg", "--batch", "--yes", "--use-agent", "--local-user", "KEY", "--armor",
            "--output", "out.asc", "--detach-sign", str(archive),
        ]

    def test_build_command_without_agent_and_armor(self, archive):
        signer = Signer.from_config(SigningModel(key_name="KEY", gpg="/opt/gpg2", use_agent=False, armor=False))
        command = signer.build_command(archive, Path("out.sig"))
        assert command[0] == "/opt/gpg2"
        assert "--use-agent" not in command
        assert "--armor" not in command
        assert signer.signature_path(archive).name == "demo-1.0.0.tgz.sig"

    def test_check_preconditions(self):
        with patch("relpack.build.signer.find_executable", return_value="/usr/bin/gpg"):
            Signer("KEY").check_preconditions()
            with pytest.raises(PreconditionError, match="signing.key_name"):
                Signer(None).check_preconditions()

        with patch("relpack.build.signer.find_executable", return_value=None):
            with pytest.raises(PreconditionError, match="gpg"):
                Signer("KEY").check_preconditions()

    def test_sign(self, archive, fake_gpg):
        """测试签名文件写在归档旁边"""
        with patch("relpack.build.signer.subprocess.run", side_effect=fake_gpg()) as run:
            record = Signer("KEY").sign(archive)

        assert record.target == archive
        assert record.signature == archive.with_name("demo-1.0.0.tgz.asc")
        assert record.signature.read_text(encoding="utf-8").startswith("-----BEGIN PGP SIGNATURE-----")
        command = run.call_args[0][0]
        assert command[-2:] == ["--detach-sign", str(archive)]
        assert sorted(p.name for p in archive.parent.iterdir()) == ["demo-1.0.0.tgz", "demo-1.0.0.tgz.asc"]

    def test_sign_without_key(self, archive):
        with patch("relpack.build.signer.subprocess.run") as run:
            with pytest.raises(PreconditionError):
                Signer(None).sign(archive)
        run.assert_not_called()

    def test_sign_missing_target(self, tmp_path):
        with pytest.raises(MissingArtifactError):
            Signer("KEY").sign(tmp_path / "missing.tgz")

    def test_gpg_failure(self, archive, fake_gpg):
        """测试 gpg 失败时不留下签名文件"""
        with patch("relpack.build.signer.subprocess.run", side_effect=fake_gpg(returncode=2)):
            with pytest.raises(ExternalToolError) as exc_info:
                Signer("KEY").sign(archive)

        assert exc_info.value.tool == "gpg"
        assert exc_info.value.returncode == 2
        assert "signing failed" in str(exc_info.value)
        assert [p.name for p in archive.parent.iterdir()] == ["demo-1.0.0.tgz"]

    def test_gpg_success_without_output(self, archive, fake_gpg):
        with patch("relpack.build.signer.subprocess.run", side_effect=fake_gpg(write=False)):
            with pytest.raises(ExternalToolError):
                Signer("KEY").sign(archive)
        assert not archive.with_name("demo-1.0.0.tgz.asc").exists()
