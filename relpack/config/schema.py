"""
配置 Schema 定义

使用 Pydantic 定义严格的 YAML 配置模型，支持验证和类型检查。
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# 1980-01-01T00:00:00Z，zip 格式能表示的最早时间
ZIP_EPOCH = 315532800

# 签名密钥属性名，出现在错误提示中
SIGNING_KEY_PROPERTY = "signing.key_name"


class ArchiveFormat(str, Enum):
    """归档格式枚举"""
    TGZ = "tgz"
    ZIP = "zip"


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        SUPPORTED_VERSIONS = [1]
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {SUPPORTED_VERSIONS}")
        return v


class ProductModel(BaseModel):
    """产品信息模型"""
    name: str = Field(..., description="产品名称", min_length=1, max_length=100)
    version: str = Field(..., description="版本号", min_length=1, max_length=40)
    description: Optional[str] = Field(None, description="产品描述", max_length=500)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """名称会成为归档文件名和前缀目录的一部分"""
        if not re.match(r'^[A-Za-z0-9][A-Za-z0-9._\-]*$', v):
            raise ValueError("产品名称只能包含字母、数字、'.'、'_' 和 '-'")
        return v

    @field_validator('version')
    @classmethod
    def validate_version(cls, v: str) -> str:
        """验证版本号格式"""
        patterns = [
            r'^\d+\.\d+\.\d+(?:-[\w\-\.]+)?$',  # SemVer，含 -SNAPSHOT 之类后缀
            r'^\d+\.\d+(?:-[\w\-\.]+)?$',       # 两段式
            r'^\d+\.\d+\.\d+\.\d+$',            # 四段式
        ]

        for pattern in patterns:
            if re.match(pattern, v):
                return v

        raise ValueError("版本号格式不正确，支持格式：1.0.0、1.0.0-SNAPSHOT、1.0 等")


class DependencyModel(BaseModel):
    """已解析的运行时依赖"""
    group: str = Field(..., description="依赖的 group 标识", min_length=1)
    name: str = Field(..., description="依赖的 artifact 名称", min_length=1)
    version: Optional[str] = Field(None, description="依赖版本")
    file: Path = Field(..., description="依赖文件路径")


class ComponentModel(BaseModel):
    """子组件模型

    描述外部构建系统已经产出的内容：主产物、随包文件和完整的运行时依赖集合。
    """
    path: str = Field(..., description="组件层级标识，例如 :lucene:core", min_length=2)
    artifact: Path = Field(..., description="组件主产物")
    packaging: List[Path] = Field(default_factory=list, description="与主产物放在一起的附加文件（README、启动脚本等）")
    dependencies: List[DependencyModel] = Field(default_factory=list, description="已解析的运行时依赖集合")

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith(':'):
            raise ValueError("组件标识必须以 ':' 开头")
        if any(not part for part in v[1:].split(':')):
            raise ValueError(f"组件标识包含空的层级: {v}")
        if any(part in ('.', '..') or '/' in part or '\\' in part for part in v[1:].split(':')):
            raise ValueError(f"组件标识的层级不能是 '.' 或 '..'，也不能包含路径分隔符: {v}")
        return v


class ExtraFileModel(BaseModel):
    """放到分发目录指定子目录下的固定文件"""
    path: Path = Field(..., description="源文件路径")
    into: str = Field("", description="分发目录内的目标子目录")


class LayoutModel(BaseModel):
    """分发目录布局配置"""
    root_prefix: str = Field(":", description="计算组件目标路径时去掉的公共前缀")
    root_dir: Optional[Path] = Field(None, description="根目录文件所在目录")
    root_files: List[str] = Field(default_factory=list, description="复制到分发根目录的文件（支持 glob）")
    extras: List[ExtraFileModel] = Field(default_factory=list, description="额外的固定文件")
    docs: Optional[Path] = Field(None, description="已生成文档目录，复制到 docs/")
    lib_exclude: List[str] = Field(default_factory=list, description="从 lib 目录排除的文件名模式")

    @field_validator('root_prefix')
    @classmethod
    def validate_root_prefix(cls, v: str) -> str:
        if not v.startswith(':') or not v.endswith(':'):
            raise ValueError("root_prefix 必须以 ':' 开头和结尾，例如 ':lucene:'")
        return v

    @model_validator(mode='after')
    def validate_root_files(self) -> 'LayoutModel':
        if self.root_files and self.root_dir is None:
            raise ValueError("配置了 root_files 时必须设置 root_dir")
        return self


class ArchiveModel(BaseModel):
    """归档配置模型"""
    base_name: Optional[str] = Field(None, description="归档基础名称，默认使用产品名称")
    formats: List[ArchiveFormat] = Field(
        default_factory=lambda: [ArchiveFormat.TGZ, ArchiveFormat.ZIP],
        description="二进制分发的归档格式",
    )
    timestamp: int = Field(ZIP_EPOCH, description="归档条目使用的固定时间戳（秒）")
    checksums: bool = Field(False, description="是否也为二进制归档生成 .sha512 文件")

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v: int) -> int:
        if v < ZIP_EPOCH:
            raise ValueError("timestamp 不能早于 1980-01-01（zip 格式限制）")
        return v

    @field_validator('formats')
    @classmethod
    def validate_formats(cls, v: List[ArchiveFormat]) -> List[ArchiveFormat]:
        # 去重并保持顺序
        seen: List[ArchiveFormat] = []
        for fmt in v:
            if fmt not in seen:
                seen.append(fmt)
        return seen


class SourceModel(BaseModel):
    """源码快照配置"""
    enabled: bool = Field(True, description="是否生成源码快照")
    repository: Optional[Path] = Field(None, description="git 仓库目录")
    ref: str = Field("HEAD", description="导出的 git 引用", min_length=1)
    git: str = Field("git", description="git 可执行文件")


class SigningModel(BaseModel):
    """GPG 签名配置"""
    key_name: Optional[str] = Field(None, description="GPG 密钥名称（--local-user）")
    gpg: str = Field("gpg", description="gpg 可执行文件")
    use_agent: bool = Field(True, description="是否使用 gpg-agent")
    armor: bool = Field(True, description="是否生成 ASCII armored 签名（.asc）")

    @field_validator('key_name')
    @classmethod
    def validate_key_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class OutputModel(BaseModel):
    """输出目录配置"""
    directory: Path = Field(Path("build/distributions"), description="归档输出目录")
    staging_dir: Path = Field(Path("build/install"), description="分发目录树的暂存目录")


class ReleaseConfig(BaseModel):
    """发布主配置模型

    整个配置文件的根模型。
    """

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")

    product: ProductModel = Field(..., description="产品信息")
    components: List[ComponentModel] = Field(..., description="子组件列表", min_length=1)

    layout: LayoutModel = Field(default_factory=LayoutModel, description="布局配置")
    exclude_components: List[str] = Field(default_factory=list, description="不进入二进制分发的组件标识")
    exclude_groups: List[str] = Field(default_factory=list, description="从依赖集合中排除的 group")
    archives: ArchiveModel = Field(default_factory=ArchiveModel, description="归档配置")
    source: SourceModel = Field(default_factory=SourceModel, description="源码快照配置")
    signing: SigningModel = Field(default_factory=SigningModel, description="签名配置")
    output: OutputModel = Field(default_factory=OutputModel, description="输出配置")

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }

    @model_validator(mode='after')
    def validate_components(self) -> 'ReleaseConfig':
        seen = set()
        for component in self.components:
            if component.path in seen:
                raise ValueError(f"组件标识重复: {component.path}")
            seen.add(component.path)
        return self

    @property
    def base_name(self) -> str:
        return self.archives.base_name or self.product.name

    @property
    def dist_name(self) -> str:
        """归档前缀目录名称，例如 lucene-9.0.0"""
        return f"{self.base_name}-{self.product.version}"

    def included_components(self) -> List[ComponentModel]:
        """返回未被排除的组件（保持配置顺序）"""
        excluded = set(self.exclude_components)
        return [c for c in self.components if c.path not in excluded]

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return obj.as_posix()
            else:
                return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReleaseConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
