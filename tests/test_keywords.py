# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Unit tests for provider keywords and provider selection.
"""

import unittest

from etrace.errors import ConfigurationError, UnknownKeywordError
from etrace.events.event import TraceEvent
from etrace.providers.keywords import (
    ClrKeywords,
    KernelKeywords,
    keyword_names,
    parse_keywords,
    ProviderSelection,
)


def provider_event(provider: str, keywords=None) -> TraceEvent:
    return TraceEvent(
        event_name="X", process_id=1, thread_id=1, provider=provider, keywords=keywords
    )


class TestParseKeywords(unittest.TestCase):
    def test_combines_names(self):
        flags = parse_keywords(ClrKeywords, ["GC", "Jit"])
        self.assertEqual(flags, ClrKeywords.GC | ClrKeywords.Jit)

    def test_empty(self):
        self.assertEqual(parse_keywords(KernelKeywords, []), KernelKeywords.NONE)

    def test_names_are_case_sensitive(self):
        with self.assertRaises(UnknownKeywordError):
            parse_keywords(ClrKeywords, ["gc"])

    def test_unknown_name(self):
        with self.assertRaises(UnknownKeywordError) as ctx:
            parse_keywords(KernelKeywords, ["Process", "Bogus"])
        self.assertIn("Bogus", str(ctx.exception))
        self.assertIsInstance(ctx.exception, ConfigurationError)

    def test_none_is_not_selectable(self):
        with self.assertRaises(UnknownKeywordError):
            parse_keywords(KernelKeywords, ["NONE"])

    def test_keyword_names(self):
        names = keyword_names(KernelKeywords)
        self.assertEqual(names[0], "Process")
        self.assertIn("FileIOInit", names)
        self.assertNotIn("NONE", names)


class TestProviderSelection(unittest.TestCase):
    def test_empty(self):
        self.assertTrue(ProviderSelection().is_empty)
        self.assertFalse(ProviderSelection.from_names(other_providers=["X"]).is_empty)

    def test_keyword_intersection(self):
        selection = ProviderSelection.from_names(kernel_keywords=["Process", "Thread"])
        self.assertTrue(selection.accepts(provider_event("Kernel", 0x2)))
        self.assertFalse(selection.accepts(provider_event("Kernel", 0x4)))
        self.assertFalse(selection.accepts(provider_event("CLR", 0x1)))

    def test_event_without_keywords(self):
        selection = ProviderSelection.from_names(clr_keywords=["GC"])
        self.assertTrue(selection.accepts(provider_event("CLR")))
        self.assertFalse(selection.accepts(provider_event("Kernel")))

    def test_other_providers_case_insensitive(self):
        selection = ProviderSelection.from_names(other_providers=["Microsoft-Windows-Win32k"])
        self.assertTrue(selection.accepts(provider_event("microsoft-windows-win32k")))
        self.assertFalse(selection.accepts(provider_event("Other")))

    def test_describe(self):
        selection = ProviderSelection.from_names(
            kernel_keywords=["Process"], clr_keywords=["GC", "Jit"], other_providers=["P"]
        )
        self.assertEqual(
            selection.describe(),
            ["Kernel keywords: Process", "CLR keywords: GC, Jit", "Other providers: p"],
        )


if __name__ == "__main__":
    unittest.main()
