"""
产物收集器单元测试

测试依赖过滤、组件描述符和缺失产物检测。
"""

from pathlib import Path, PurePosixPath

import pytest

from relpack.build.build_context import MissingArtifactError
from relpack.build.collector import ArtifactCollector, DependencyRef, collect_components, filter_dependencies
from relpack.config.schema import ComponentModel


class TestDependencyRef:
    """DependencyRef 测试"""

    def test_coordinates(self):
        assert DependencyRef("com.ibm.icu", "icu4j", Path("icu4j.jar"), "69.1").coordinates() == "com.ibm.icu:icu4j:69.1"
        assert DependencyRef("com.ibm.icu", "icu4j", Path("icu4j.jar")).coordinates() == "com.ibm.icu:icu4j"

    def test_file_name(self):
        assert DependencyRef("g", "n", Path("/deps/n-1.0.jar")).file_name == "n-1.0.jar"


class TestFilterDependencies:
    """filter_dependencies 测试"""

    def test_excludes_exact_group(self, tmp_path):
        """测试只排除 group 完全匹配的依赖"""
        deps = [
            DependencyRef("org.apache.lucene", "core", tmp_path / "lucene-core.jar"),
            DependencyRef("org.apache.lucene.sandbox", "x", tmp_path / "x.jar"),
            DependencyRef("com.ibm.icu", "icu4j", tmp_path / "icu4j.jar"),
        ]
        kept = filter_dependencies(deps, ["org.apache.lucene"])
        assert [d.name for d in kept] == ["icu4j", "x"]

    def test_deduplicates_by_file(self, tmp_path):
        """测试同一文件只保留第一次出现的依赖"""
        deps = [
            DependencyRef("g1", "a", tmp_path / "a.jar"),
            DependencyRef("g2", "a-alias", tmp_path / "a.jar"),
        ]
        kept = filter_dependencies(deps, [])
        assert len(kept) == 1
        assert kept[0].group == "g1"

    def test_sorted_by_file_name(self, tmp_path):
        deps = [DependencyRef("g", name, tmp_path / f"{name}.jar") for name in ("zeta", "alpha", "mid")]
        assert [d.file_name for d in filter_dependencies(deps, [])] == ["alpha.jar", "mid.jar", "zeta.jar"]


class TestArtifactCollector:
    """ArtifactCollector 测试"""

    def test_collect_components(self, make_config):
        """测试收集组件并应用 group 排除"""
        components = collect_components(make_config())
        by_id = {c.identifier: c for c in components}

        assert set(by_id) == {":demo:A", ":demo:B"}
        assert by_id[":demo:A"].destination == PurePosixPath("A")
        assert by_id[":demo:A"].dependencies == ()
        assert [d.file_name for d in by_id[":demo:B"].dependencies] == ["y.jar"]
        assert by_id[":demo:B"].lib_destination == PurePosixPath("B/lib")
        assert [p.name for p in by_id[":demo:B"].packaging] == ["b.bat", "b.sh"]

    def test_excluded_dependencies_recorded(self, make_config):
        config = make_config()
        collector = ArtifactCollector.from_config(config)
        collector.collect(config.included_components())

        assert [(cid, dep.name) for cid, dep in collector.excluded_dependencies] == [(":demo:B", "x")]

    def test_excluded_components_skipped(self, make_config):
        components = collect_components(make_config(exclude_components=[":demo:B"]))
        assert [c.identifier for c in components] == [":demo:A"]

    def test_missing_artifact(self, make_config, project_dir):
        """测试主产物不存在时报错"""
        (project_dir / "out" / "a" / "a.jar").unlink()
        with pytest.raises(MissingArtifactError, match=":demo:A"):
            collect_components(make_config())

    def test_missing_packaging_file(self, make_config, project_dir):
        (project_dir / "out" / "b" / "bin" / "b.sh").unlink()
        with pytest.raises(MissingArtifactError, match="b.sh"):
            collect_components(make_config())

    def test_missing_kept_dependency(self, make_config, project_dir):
        (project_dir / "deps" / "y.jar").unlink()
        with pytest.raises(MissingArtifactError, match="kept.group:y"):
            collect_components(make_config())

    def test_missing_excluded_dependency_ignored(self, make_config, project_dir):
        """测试被排除的依赖文件不存在时不报错"""
        (project_dir / "deps" / "x.jar").unlink()
        components = collect_components(make_config())
        assert len(components) == 2

    def test_describe_with_custom_prefix(self, tmp_path):
        artifact = tmp_path / "common.jar"
        artifact.write_text("x", encoding="utf-8")
        collector = ArtifactCollector(root_prefix=":lucene:")

        descriptor = collector.describe(ComponentModel(path=":lucene:analysis:common", artifact=artifact))
        assert descriptor.destination == PurePosixPath("analysis/common")
        assert descriptor.artifact_name == "common.jar"
