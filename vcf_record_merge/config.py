"""Configuration for record merges.

``DEFAULT_UNMERGEABLE_FORMAT_FIELDS`` lists the FORMAT keys whose values are
indexed by allele and therefore become meaningless once the allele numbering of
a merged record differs from that of its inputs. :class:`MergeSettings` bundles
that set together with the policy switches consulted by
:func:`vcf_record_merge.merging.merge_records`, and
:func:`allele_indexed_format_fields` derives the set from the FORMAT
definitions of a ``vcfpy`` header when one is available.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple

from . import vcfpy

FORMAT_GENOTYPE = "GT"

DEFAULT_UNMERGEABLE_FORMAT_FIELDS: Tuple[str, ...] = ("AD", "ADF", "ADR", "GL", "PL")

DUPLICATE_WARNINGS_TO_PRINT = 5

_ALLELE_INDEXED_NUMBERS = {"A", "R", "G"}


def prepare_unmergeable_fields(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    """Normalize *values* and drop sentinel placeholders like '.', '', or None."""
    if values is None:
        values = DEFAULT_UNMERGEABLE_FORMAT_FIELDS
    return frozenset(v for v in values if v not in {None, "", "."})


def allele_indexed_format_fields(header) -> FrozenSet[str]:
    """Return FORMAT IDs in *header* declared with ``Number=A``, ``R`` or ``G``."""
    if header is None:
        return frozenset()
    found = set()
    for line in getattr(header, "lines", []) or []:
        if not isinstance(line, vcfpy.header.FormatHeaderLine):
            continue
        if line.id == FORMAT_GENOTYPE:
            continue
        number = getattr(line, "number", None)
        if isinstance(number, str) and number.strip() in _ALLELE_INDEXED_NUMBERS:
            found.add(line.id)
    return frozenset(found)


@dataclass(frozen=True)
class MergeSettings:
    """Policy for merging records that share a reference span."""

    unmergeable_format_fields: FrozenSet[str] = field(
        default_factory=lambda: prepare_unmergeable_fields(None)
    )
    """FORMAT keys that veto a merge when the allele numbering changes."""

    preserve_formats: bool = False
    """Keep unmergeable FORMAT keys by refusing the merge instead of dropping them."""

    @property
    def drop_unmergeable(self) -> bool:
        return not self.preserve_formats

    @classmethod
    def from_header(cls, header, *, preserve_formats: bool = False) -> "MergeSettings":
        """Build settings whose unmergeable set comes from *header* FORMAT lines."""
        return cls(
            unmergeable_format_fields=allele_indexed_format_fields(header),
            preserve_formats=preserve_formats,
        )


__all__ = [
    "FORMAT_GENOTYPE",
    "DEFAULT_UNMERGEABLE_FORMAT_FIELDS",
    "DUPLICATE_WARNINGS_TO_PRINT",
    "MergeSettings",
    "allele_indexed_format_fields",
    "prepare_unmergeable_fields",
]
