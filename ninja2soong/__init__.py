# SPDX-License-Identifier: MIT
"""
ninja2soong: translate Ninja build graphs into Android Soong packages.

ninja2soong reads the build.ninja a build generator (Meson, CMake, GN)
wrote for a native project, computes what went into each requested
library, and writes the equivalent Android.bp modules so the project
can be built by the Android build system.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export commonly used classes for convenient imports
from ninja2soong.configure.config import TranslateConfig, load_config  # noqa: E402
from ninja2soong.core.errors import Ninja2SoongError  # noqa: E402
from ninja2soong.core.project import BaseProject, LicenseInfo, Project  # noqa: E402
from ninja2soong.core.translator import TranslationResult, translate  # noqa: E402

__all__ = [
    "BaseProject",
    "LicenseInfo",
    "Ninja2SoongError",
    "Project",
    "TranslateConfig",
    "TranslationResult",
    "__version__",
    "load_config",
    "translate",
]
