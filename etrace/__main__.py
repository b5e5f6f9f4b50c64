# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Allow running etrace as a module: python -m etrace
"""

from etrace.cli import main

if __name__ == "__main__":
    main()
