from .container import EngineBuilder, EngineConfig
from .orchestrator import NestingOrchestrator
from .runner import EngineRunner
from .simulator import DryRunSession
from .wiring import build_engine, build_engine_config

__all__ = [
    "EngineBuilder",
    "EngineConfig",
    "NestingOrchestrator",
    "EngineRunner",
    "DryRunSession",
    "build_engine",
    "build_engine_config",
]
