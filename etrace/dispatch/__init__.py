# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
etrace dispatch module: per-event filtering and session lifecycle.
"""

from etrace.dispatch.lifecycle import DispatchCounters, SessionLifecycle
from etrace.dispatch.pipeline import EventDispatcher

__all__ = ["DispatchCounters", "EventDispatcher", "SessionLifecycle"]
