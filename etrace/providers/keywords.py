# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Provider keywords and provider selection for live sessions.

Keywords select categories of events from the kernel and CLR providers.
Other providers are enabled wholesale by name or GUID.
"""

import enum
from dataclasses import dataclass, field
from typing import Iterable, Type, TypeVar

from etrace.errors import UnknownKeywordError
from etrace.events.event import TraceEvent

KERNEL_PROVIDER = "Kernel"
CLR_PROVIDER = "CLR"


class KernelKeywords(enum.IntFlag):
    NONE = 0
    Process = 0x1
    Thread = 0x2
    ImageLoad = 0x4
    ProcessCounters = 0x8
    ContextSwitch = 0x10
    DeferedProcedureCalls = 0x20
    Interrupt = 0x40
    SystemCall = 0x80
    DiskIO = 0x100
    DiskFileIO = 0x200
    DiskIOInit = 0x400
    Dispatcher = 0x800
    MemoryPageFaults = 0x1000
    MemoryHardFaults = 0x2000
    VirtualAlloc = 0x4000
    VAMap = 0x8000
    NetworkTCPIP = 0x10000
    Registry = 0x20000
    AdvancedLocalProcedureCalls = 0x100000
    SplitIO = 0x200000
    Driver = 0x800000
    Profile = 0x1000000
    FileIO = 0x2000000
    FileIOInit = 0x4000000


class ClrKeywords(enum.IntFlag):
    NONE = 0
    GC = 0x1
    GCHandle = 0x2
    Binder = 0x4
    Loader = 0x8
    Jit = 0x10
    NGen = 0x20
    StartEnumeration = 0x40
    EndEnumeration = 0x80
    Security = 0x400
    AppDomainResourceManagement = 0x800
    JitTracing = 0x1000
    Interop = 0x2000
    Contention = 0x4000
    Exception = 0x8000
    Threading = 0x10000
    JittedMethodILToNativeMap = 0x20000
    OverrideAndSuppressNGenEvents = 0x40000
    Type = 0x80000
    GCHeapDump = 0x100000
    GCSampledObjectAllocationHigh = 0x200000
    GCHeapSurvivalAndMovement = 0x400000
    GCHeapCollect = 0x800000
    GCHeapAndTypeNames = 0x1000000
    GCSampledObjectAllocationLow = 0x2000000
    PerfTrack = 0x20000000
    Stack = 0x40000000
    ThreadTransfer = 0x80000000
    Debugger = 0x100000000


K = TypeVar("K", KernelKeywords, ClrKeywords)


def keyword_names(keywords: Type[enum.IntFlag]) -> list[str]:
    """Selectable keyword names, in bit order."""
    return [member.name for member in keywords if member.value]


def parse_keywords(keywords: Type[K], names: Iterable[str]) -> K:
    """
    Combine keyword names into a single flag value.

    Names are case-sensitive.

    Raises:
        UnknownKeywordError: If a name is not a keyword of this provider
    """
    result = keywords(0)
    for name in names:
        member = keywords.__members__.get(name)
        if member is None or not member.value:
            raise UnknownKeywordError(
                f"Unknown {keywords.__name__} name: '{name}'. "
                f"Use 'etrace list' to see the supported names."
            )
        result |= member
    return result


@dataclass(frozen=True)
class ProviderSelection:
    """The set of providers, and their keywords, enabled for a live session."""

    kernel: KernelKeywords = KernelKeywords.NONE
    clr: ClrKeywords = ClrKeywords.NONE
    other: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_names(
        cls,
        kernel_keywords: Iterable[str] = (),
        clr_keywords: Iterable[str] = (),
        other_providers: Iterable[str] = (),
    ) -> "ProviderSelection":
        return cls(
            kernel=parse_keywords(KernelKeywords, kernel_keywords),
            clr=parse_keywords(ClrKeywords, clr_keywords),
            other=frozenset(p.lower() for p in other_providers),
        )

    @property
    def is_empty(self) -> bool:
        return not self.kernel and not self.clr and not self.other

    def accepts(self, event: TraceEvent) -> bool:
        """Whether a live event comes from an enabled provider and keyword."""
        if event.provider == KERNEL_PROVIDER:
            mask = int(self.kernel)
        elif event.provider == CLR_PROVIDER:
            mask = int(self.clr)
        else:
            return event.provider.lower() in self.other

        if not mask:
            return False
        return event.keywords is None or bool(event.keywords & mask)

    def describe(self) -> list[str]:
        lines = []
        if self.kernel:
            lines.append("Kernel keywords: " + ", ".join(_members(self.kernel)))
        if self.clr:
            lines.append("CLR keywords: " + ", ".join(_members(self.clr)))
        if self.other:
            lines.append("Other providers: " + ", ".join(sorted(self.other)))
        return lines


def _members(flags: enum.IntFlag) -> list[str]:
    return [m.name for m in type(flags) if m.value and m in flags]
