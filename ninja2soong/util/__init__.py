# SPDX-License-Identifier: MIT
"""Utility helpers for ninja2soong."""
