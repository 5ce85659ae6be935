"""测试共用 fixture"""

import subprocess
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

from relpack.config.loader import ConfigLoader
from relpack.config.schema import ReleaseConfig


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """模拟外部构建系统已经产出的文件

    组件 A（a.jar，无依赖）和组件 B（b.jar，依赖被排除 group 的 x.jar
    和保留 group 的 y.jar，带启动脚本）。
    """
    root = tmp_path / "project"
    _write(root / "LICENSE.txt", "license")
    _write(root / "README.md", "readme")
    _write(root / "licenses" / "y-LICENSE.txt", "y license")
    _write(root / "analysis" / "README.txt", "analysis readme")
    _write(root / "docs-site" / "index.html", "<html></html>")
    _write(root / "docs-site" / "api" / "core.html", "<html>core</html>")

    _write(root / "out" / "a" / "a.jar", "A")
    _write(root / "out" / "b" / "b.jar", "B")
    _write(root / "out" / "b" / "bin" / "b.sh", "#!/bin/sh\necho b\n")
    _write(root / "out" / "b" / "bin" / "b.bat", "@echo b\r\n")
    _write(root / "deps" / "x.jar", "X")
    _write(root / "deps" / "y.jar", "Y")
    return root


@pytest.fixture
def config_data() -> Dict[str, Any]:
    """与 project_dir 对应的配置字典（相对路径）"""
    return {
        "product": {"name": "demo", "version": "1.0.0"},
        "layout": {
            "root_prefix": ":demo:",
            "root_dir": ".",
            "root_files": ["LICENSE.txt", "README.md", "licenses/*"],
        },
        "components": [
            {"path": ":demo:A", "artifact": "out/a/a.jar"},
            {
                "path": ":demo:B",
                "artifact": "out/b/b.jar",
                "packaging": ["out/b/bin/b.sh", "out/b/bin/b.bat"],
                "dependencies": [
                    {"group": "excluded.group", "name": "x", "version": "1", "file": "deps/x.jar"},
                    {"group": "kept.group", "name": "y", "version": "1", "file": "deps/y.jar"},
                ],
            },
        ],
        "exclude_groups": ["excluded.group"],
        "source": {"enabled": False},
    }


@pytest.fixture
def make_config(project_dir: Path, config_data: Dict[str, Any]) -> Callable[..., ReleaseConfig]:
    """按需修改配置字典后加载配置，相对路径以 project_dir 为基准"""

    def _make(**overrides: Any) -> ReleaseConfig:
        data = dict(config_data)
        data.update(overrides)
        return ConfigLoader().load_from_dict(data, base_path=project_dir)

    return _make


@pytest.fixture
def fake_gpg() -> Callable[..., Callable[..., subprocess.CompletedProcess]]:
    """模拟 gpg：成功时在 --output 指定的位置写出签名"""

    def _factory(returncode: int = 0, write: bool = True):
        def _run(command, **kwargs):
            if write:
                output = Path(command[command.index("--output") + 1])
                output.write_text("-----BEGIN PGP SIGNATURE-----", encoding="utf-8")
            stderr = "" if returncode == 0 else "gpg: signing failed"
            return subprocess.CompletedProcess(command, returncode, stdout="", stderr=stderr)

        return _run

    return _factory
