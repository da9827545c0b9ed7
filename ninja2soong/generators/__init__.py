# SPDX-License-Identifier: MIT
"""Package description generators for ninja2soong."""

from ninja2soong.generators.blueprint import BlueprintGenerator

__all__ = ["BlueprintGenerator"]
