# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
etrace: filter and display structured trace events.
"""
