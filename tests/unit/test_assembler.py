"""
分发目录组装器单元测试
"""

import stat
from pathlib import PurePosixPath

import pytest

from relpack.build.assembler import (
    EXEC_MODE,
    FILE_MODE,
    DistributionAssembler,
    StagingTree,
    mode_for,
)
from relpack.build.build_context import MissingArtifactError, StagingConflictError
from relpack.build.collector import collect_components


class TestModeFor:
    """权限位测试"""

    def test_scripts_are_executable(self):
        for name in ("bin/luke.sh", "bin/luke.cmd", "bin/LUKE.BAT"):
            assert mode_for(PurePosixPath(name)) == EXEC_MODE

    def test_other_files(self):
        for name in ("core/core.jar", "README.md", "bin/sh"):
            assert mode_for(PurePosixPath(name)) == FILE_MODE


class TestStagingTree:
    """StagingTree 测试"""

    def test_add_and_directories(self, tmp_path):
        source = tmp_path / "a.jar"
        source.write_text("A", encoding="utf-8")

        tree = StagingTree()
        tree.add(PurePosixPath("x/y/a.jar"), source, "test")

        assert "x/y/a.jar" in tree
        assert len(tree) == 1
        assert tree.directories() == [PurePosixPath("x"), PurePosixPath("x/y")]
        assert tree.get(PurePosixPath("x/y/a.jar")).origin == "test"

    def test_missing_source(self, tmp_path):
        with pytest.raises(MissingArtifactError):
            StagingTree().add(PurePosixPath("a.jar"), tmp_path / "missing.jar")

    def test_identical_content_is_deduplicated(self, tmp_path):
        """测试同一路径的相同内容只保留一份"""
        first = tmp_path / "one" / "dep.jar"
        second = tmp_path / "two" / "dep.jar"
        for path in (first, second):
            path.parent.mkdir()
            path.write_bytes(b"same")

        tree = StagingTree()
        tree.add(PurePosixPath("lib/dep.jar"), first)
        entry = tree.add(PurePosixPath("lib/dep.jar"), second)

        assert len(tree) == 1
        assert entry.source == first

    def test_different_content_conflicts(self, tmp_path):
        """测试同一路径的不同内容视为冲突"""
        first = tmp_path / "first.jar"
        second = tmp_path / "second.jar"
        first.write_bytes(b"one")
        second.write_bytes(b"two")

        tree = StagingTree()
        tree.add(PurePosixPath("lib/dep.jar"), first)
        with pytest.raises(StagingConflictError):
            tree.add(PurePosixPath("lib/dep.jar"), second)

    def test_file_directory_conflict(self, tmp_path):
        source = tmp_path / "f"
        source.write_bytes(b"x")

        tree = StagingTree()
        tree.add(PurePosixPath("core"), source)
        with pytest.raises(StagingConflictError):
            tree.add(PurePosixPath("core/core.jar"), source)

        other = StagingTree()
        other.add(PurePosixPath("core/core.jar"), source)
        with pytest.raises(StagingConflictError):
            other.add(PurePosixPath("core"), source)

    def test_entries_sorted(self, tmp_path):
        source = tmp_path / "f"
        source.write_bytes(b"x")

        tree = StagingTree()
        for name in ("z.txt", "a/b.txt", "m.txt"):
            tree.add(PurePosixPath(name), source)
        assert [e.path.as_posix() for e in tree.entries()] == ["a/b.txt", "m.txt", "z.txt"]


class TestDistributionAssembler:
    """DistributionAssembler 测试"""

    def test_assemble(self, make_config):
        """测试组装出的目录结构和权限位"""
        config = make_config()
        assembler = DistributionAssembler(config)
        staged = assembler.assemble(assembler.plan(collect_components(config)))
        root = config.output.staging_dir

        assert (root / "A" / "a.jar").read_text(encoding="utf-8") == "A"
        assert (root / "B" / "b.jar").is_file()
        assert (root / "B" / "lib" / "y.jar").is_file()
        assert not (root / "B" / "lib" / "x.jar").exists()
        assert not (root / "B" / "lib" / "b.jar").exists()
        assert (root / "licenses" / "y-LICENSE.txt").is_file()

        assert stat.S_IMODE((root / "B" / "b.sh").stat().st_mode) == EXEC_MODE
        assert stat.S_IMODE((root / "B" / "b.bat").stat().st_mode) == EXEC_MODE
        assert stat.S_IMODE((root / "A" / "a.jar").stat().st_mode) == FILE_MODE

        # 返回的树指向暂存目录中的副本
        assert staged.get(PurePosixPath("A/a.jar")).source == root / "A" / "a.jar"

    def test_assemble_clears_previous_content(self, make_config):
        """测试重复组装时旧文件被清除"""
        config = make_config()
        root = config.output.staging_dir
        root.mkdir(parents=True)
        (root / "stale.txt").write_text("old", encoding="utf-8")

        assembler = DistributionAssembler(config)
        assembler.assemble(assembler.plan(collect_components(config)))

        assert not (root / "stale.txt").exists()
        assert (root / "A" / "a.jar").is_file()

    def test_assemble_into_custom_directory(self, make_config, tmp_path):
        config = make_config()
        assembler = DistributionAssembler(config)
        target = tmp_path / "custom"
        staged = assembler.assemble(assembler.plan(collect_components(config)), target)

        assert (target / "B" / "lib" / "y.jar").is_file()
        assert len(staged) == 8
