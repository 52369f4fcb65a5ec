"""集中配置管理

提供统一的配置入口，支持从项目下的 .cargo-localize.yml 加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from cargo_localize.core.exceptions import ConfigError
from cargo_localize.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".cargo-localize.yml"


@dataclass
class Config:
    """引擎全局配置"""

    # 目录 / 文件名
    third_party_dir: str = "3rd-party"
    manifest_name: str = "Cargo.toml"
    lock_name: str = "Cargo.lock"
    backup_suffix: str = ".bak"

    # 包缓存根目录，空则取 $CARGO_HOME 或 ~/.cargo
    cargo_home: str = ""

    # 是否同时改写 3rd-party 内各包自身的清单
    rewrite_vendored: bool = False

    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("third_party_dir", "manifest_name", "lock_name", "backup_suffix"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"配置项 {name} 必须是非空字符串: {value!r}")
        if not isinstance(self.cargo_home, str):
            raise ConfigError(f"配置项 cargo_home 必须是字符串: {self.cargo_home!r}")
        if not isinstance(self.rewrite_vendored, bool):
            raise ConfigError(
                f"配置项 rewrite_vendored 必须是布尔值: {self.rewrite_vendored!r}"
            )

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError, OSError) as exc:
            raise ConfigError(f"读取配置文件失败: {path}: {exc}") from exc
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        if extra:
            logger.warning("忽略未知配置项: %s", ", ".join(sorted(extra)))
        return cfg

    @classmethod
    def for_project(cls, project_root: str | Path) -> Config:
        """加载项目根目录下的 .cargo-localize.yml"""
        return cls.from_file(Path(project_root) / CONFIG_FILE_NAME)

    def resolve_cargo_home(self) -> Path:
        """cargo_home 配置 > $CARGO_HOME > ~/.cargo"""
        if self.cargo_home:
            return Path(self.cargo_home).expanduser()
        env_home = os.environ.get("CARGO_HOME", "")
        if env_home:
            return Path(env_home)
        return Path.home() / ".cargo"
