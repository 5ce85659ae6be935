"""
工具模块单元测试
"""

import io
from pathlib import Path, PurePosixPath

import pytest

from relpack.utils.logging import LogStage, OutputFacade, OutputLevel
from relpack.utils.paths import format_size, safe_path_join, temporary_sibling


class TestPaths:
    """路径工具测试"""

    def test_safe_path_join(self):
        assert safe_path_join("core", "lib", "a.jar") == PurePosixPath("core/lib/a.jar")
        assert safe_path_join("", "a.jar") == PurePosixPath("a.jar")
        assert safe_path_join("docs\\api", "x.html") == PurePosixPath("docs/api/x.html")

    def test_safe_path_join_rejects_escape(self):
        for parts in (("..", "x"), ("a/../b",), ("/etc", "passwd")):
            with pytest.raises(ValueError):
                safe_path_join(*parts)

    def test_temporary_sibling(self, tmp_path):
        target = tmp_path / "demo.tgz"
        tmp = temporary_sibling(target)
        assert tmp.parent == tmp_path
        assert tmp.name.startswith(".demo.tgz.")
        assert tmp.name.endswith(".tmp")

    def test_format_size(self):
        assert format_size(0) == "0 B"
        assert format_size(1023) == "1023 B"
        assert format_size(1536) == "1.5 KB"
        assert format_size(5 * 1024 * 1024) == "5.0 MB"
        assert format_size(3 * 1024 ** 5) == "3072.0 TB"


class TestOutputFacade:
    """输出门面测试"""

    def _facade(self):
        out, err = io.StringIO(), io.StringIO()
        return OutputFacade(stdout=out, stderr=err), out, err

    def test_levels_and_streams(self):
        """测试错误写到 stderr，低于当前级别的信息不输出"""
        facade, out, err = self._facade()
        facade.emit("hidden", OutputLevel.DEBUG, LogStage.COLLECT)
        facade.emit("visible", OutputLevel.INFO, LogStage.COLLECT)
        facade.emit("broken", OutputLevel.ERROR, LogStage.SIGN)

        assert "hidden" not in out.getvalue()
        assert "visible" in out.getvalue()
        assert "COLLECT" in out.getvalue()
        assert "broken" in err.getvalue()

        facade.set_level(OutputLevel.DEBUG)
        facade.emit("now shown", OutputLevel.DEBUG)
        assert "now shown" in out.getvalue()

    def test_markup_is_escaped(self):
        facade, out, _ = self._facade()
        facade.emit("[red]literal[/red]", OutputLevel.INFO)
        assert "[red]literal[/red]" in out.getvalue()

    def test_warning_count(self):
        facade, _, _ = self._facade()
        facade.emit("a", OutputLevel.WARNING)
        facade.emit("b", OutputLevel.WARNING)
        assert facade.count(OutputLevel.WARNING) == 2

        facade.reset_counts()
        assert facade.count(OutputLevel.WARNING) == 0

    def test_log_file_records_all_levels(self, tmp_path):
        """测试日志文件记录包括 DEBUG 在内的所有级别"""
        facade, _, _ = self._facade()
        log_file = tmp_path / "logs" / "release.log"
        facade.set_log_file(log_file)
        facade.emit("debug detail", OutputLevel.DEBUG, LogStage.LAYOUT)
        facade.emit("done", OutputLevel.SUCCESS)
        facade.close()

        content = Path(log_file).read_text(encoding="utf-8")
        assert "[DEBUG] [LAYOUT] debug detail" in content
        assert "[SUCCESS] done" in content
