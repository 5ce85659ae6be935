"""
布局规划单元测试
"""

from pathlib import Path, PurePosixPath

import pytest

from relpack.build.build_context import MissingArtifactError
from relpack.build.collector import ComponentDescriptor, DependencyRef, collect_components
from relpack.build.layout import (
    build_layout_plan,
    destination_for,
    is_lib_excluded,
    plan_component_files,
    plan_docs,
    plan_root_files,
)


class TestDestinationFor:
    """destination_for 测试"""

    def test_strips_root_prefix(self):
        assert destination_for(":lucene:core", ":lucene:") == PurePosixPath("core")
        assert destination_for(":lucene:analysis:common", ":lucene:") == PurePosixPath("analysis/common")

    def test_other_prefix_keeps_full_path(self):
        """测试不在前缀下的标识使用完整层级"""
        assert destination_for(":solr:core", ":lucene:") == PurePosixPath("solr/core")
        assert destination_for(":lucene:core") == PurePosixPath("lucene/core")

    def test_empty_remainder(self):
        with pytest.raises(ValueError):
            destination_for(":lucene:", ":lucene:")


class TestRootFiles:
    """根目录文件测试"""

    def test_literal_and_glob(self, project_dir):
        planned = plan_root_files(project_dir, ["README.md", "LICENSE.txt", "licenses/*"])
        assert [p.path.as_posix() for p in planned] == [
            "LICENSE.txt",
            "README.md",
            "licenses/y-LICENSE.txt",
        ]
        assert all(p.origin == "root" for p in planned)

    def test_missing_literal_file(self, project_dir):
        """测试字面文件名不存在时报错"""
        with pytest.raises(MissingArtifactError, match="NOTICE.txt"):
            plan_root_files(project_dir, ["NOTICE.txt"])

    def test_glob_without_match_is_allowed(self, project_dir):
        assert plan_root_files(project_dir, ["*.nothing"]) == []

    def test_duplicate_matches_listed_once(self, project_dir):
        planned = plan_root_files(project_dir, ["LICENSE.txt", "*.txt"])
        assert [p.path.as_posix() for p in planned] == ["LICENSE.txt"]


class TestComponentFiles:
    """组件文件布局测试"""

    def _component(self, tmp_path: Path) -> ComponentDescriptor:
        for name in ("core.jar", "README.md", "dep-1.jar", "lucene-util.jar"):
            (tmp_path / name).write_text(name, encoding="utf-8")
        return ComponentDescriptor(
            identifier=":lucene:core",
            artifact=tmp_path / "core.jar",
            destination=PurePosixPath("core"),
            packaging=(tmp_path / "README.md",),
            dependencies=(
                DependencyRef("g", "core", tmp_path / "core.jar"),
                DependencyRef("g", "dep", tmp_path / "dep-1.jar"),
                DependencyRef("org.apache.lucene", "util", tmp_path / "lucene-util.jar"),
            ),
        )

    def test_artifact_packaging_and_lib(self, tmp_path):
        """测试主产物和随包文件在目标路径下，依赖在 lib 下，自身产物不重复"""
        component = self._component(tmp_path)
        paths = [p.path.as_posix() for p in plan_component_files(component)]
        assert paths == ["core/core.jar", "core/README.md", "core/lib/dep-1.jar", "core/lib/lucene-util.jar"]

    def test_lib_exclude_patterns(self, tmp_path):
        component = self._component(tmp_path)
        paths = [p.path.as_posix() for p in plan_component_files(component, ["lucene-*"])]
        assert "core/lib/lucene-util.jar" not in paths
        assert "core/lib/dep-1.jar" in paths

    def test_is_lib_excluded(self, tmp_path):
        component = self._component(tmp_path)
        assert is_lib_excluded("core.jar", component, [])
        assert is_lib_excluded("lucene-x.jar", component, ["lucene-*"])
        assert not is_lib_excluded("dep-1.jar", component, ["lucene-*"])


class TestDocs:
    """文档目录测试"""

    def test_docs_under_docs_dir(self, project_dir):
        planned = plan_docs(project_dir / "docs-site")
        assert [p.path.as_posix() for p in planned] == ["docs/api/core.html", "docs/index.html"]

    def test_missing_docs_dir(self, tmp_path):
        with pytest.raises(MissingArtifactError):
            plan_docs(tmp_path / "missing")

    def test_no_docs(self):
        assert plan_docs(None) == []


class TestBuildLayoutPlan:
    """完整布局计划测试"""

    def test_full_plan(self, make_config, project_dir):
        config = make_config(layout={
            "root_prefix": ":demo:",
            "root_dir": ".",
            "root_files": ["LICENSE.txt"],
            "extras": [{"path": "analysis/README.txt", "into": "analysis"}],
            "docs": "docs-site",
        })
        planned = build_layout_plan(config, collect_components(config))
        paths = [p.path.as_posix() for p in planned]

        assert paths == [
            "LICENSE.txt",
            "analysis/README.txt",
            "docs/api/core.html",
            "docs/index.html",
            "A/a.jar",
            "B/b.jar",
            "B/b.bat",
            "B/b.sh",
            "B/lib/y.jar",
        ]

    def test_declaration_order_does_not_matter(self, make_config, config_data):
        """测试组件声明顺序不影响布局结果"""
        forward = make_config()
        backward = make_config(components=list(reversed(config_data["components"])))

        plan_a = [(p.path, p.source) for p in build_layout_plan(forward, collect_components(forward))]
        plan_b = [(p.path, p.source) for p in build_layout_plan(backward, collect_components(backward))]
        assert plan_a == plan_b
