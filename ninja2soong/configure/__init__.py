# SPDX-License-Identifier: MIT
"""Configuration of translation runs."""

from ninja2soong.configure.config import TranslateConfig, load_config

__all__ = ["TranslateConfig", "load_config"]
