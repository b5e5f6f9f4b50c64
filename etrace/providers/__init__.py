# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
etrace providers module: keyword flags and live provider selection.
"""

from etrace.providers.keywords import (
    ClrKeywords,
    KernelKeywords,
    parse_keywords,
    ProviderSelection,
)

__all__ = ["ClrKeywords", "KernelKeywords", "parse_keywords", "ProviderSelection"]
