"""cargo-localize - 把 Cargo 依赖本地化到项目内的 3rd-party 目录"""

__version__ = "0.1.0"
