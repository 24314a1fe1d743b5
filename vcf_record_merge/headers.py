"""Header collaborators consulted by the merge engine.

The merge engine only needs the ordered sample names of each input header and
of the destination header. :class:`HeaderView` describes that contract;
:class:`SampleHeader` is a plain list-backed implementation and
:class:`VcfpyHeaderView` reads the names from a parsed ``vcfpy.Header``.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from . import vcfpy


class HeaderView(Protocol):
    def ordered_sample_names(self) -> Sequence[str]:
        ...

    def sample_count(self) -> int:
        ...


class SampleHeader:
    """A header known only by its ordered sample names."""

    def __init__(self, names: Optional[Sequence[str]] = None):
        self._names: List[str] = list(names or [])

    def ordered_sample_names(self) -> Sequence[str]:
        return self._names

    def sample_count(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"SampleHeader({self._names!r})"


class VcfpyHeaderView:
    """Expose the sample names of a ``vcfpy.Header``."""

    def __init__(self, header: "vcfpy.Header"):
        self.header = header

    def ordered_sample_names(self) -> Sequence[str]:
        samples = getattr(self.header, "samples", None)
        return list(getattr(samples, "names", None) or [])

    def sample_count(self) -> int:
        return len(self.ordered_sample_names())


def as_header_view(header) -> HeaderView:
    """Coerce *header* into a :class:`HeaderView`.

    Accepts existing views, ``vcfpy.Header`` objects, plain sequences of sample
    names, and None (no samples).
    """
    if header is None:
        return SampleHeader()
    if isinstance(header, vcfpy.Header):
        return VcfpyHeaderView(header)
    if hasattr(header, "ordered_sample_names") and hasattr(header, "sample_count"):
        return header
    if isinstance(header, str):
        raise TypeError("Expected a sequence of sample names, not a single string")
    return SampleHeader(header)


__all__ = ["HeaderView", "SampleHeader", "VcfpyHeaderView", "as_header_view"]
