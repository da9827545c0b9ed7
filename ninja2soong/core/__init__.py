# SPDX-License-Identifier: MIT
"""Translation engine: graph parsing, closure resolution and module synthesis."""
