"""
Language registry and runner specifications.
"""

from .registry import BUILTIN_SPECS, LanguageRegistry, default_registry
from .spec import RunnerSpec, TemplateContext, expand_command, expand_path
from .toolchains import ToolchainHealth, check_toolchain, detect_toolchains, required_executables

__all__ = [
    "BUILTIN_SPECS",
    "LanguageRegistry",
    "RunnerSpec",
    "TemplateContext",
    "ToolchainHealth",
    "check_toolchain",
    "default_registry",
    "detect_toolchains",
    "expand_command",
    "expand_path",
    "required_executables",
]
