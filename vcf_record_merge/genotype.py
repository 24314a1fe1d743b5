"""Genotype parsing and per-key FORMAT value transforms used during merges."""

from __future__ import annotations

import enum
import re
from typing import List, Sequence

from .config import FORMAT_GENOTYPE
from .logging_utils import VcfFormatError, handle_critical_error
from .record import MISSING

PHASED_SEPARATOR = "|"
UNPHASED_SEPARATOR = "/"
MISSING_ALLELE = -1

_GT_SPLIT = re.compile(r"[/|]")
_ALLELE_INDEX = re.compile(r"[0-9]+")


def split_gt(gt: str) -> List[int]:
    """Split a GT string into allele indices, using -1 for missing calls.

    >>> split_gt("0|1")
    [0, 1]
    >>> split_gt("./1")
    [-1, 1]
    """
    if not gt:
        raise VcfFormatError(f"Malformed GT '{gt}'")
    alleles: List[int] = []
    for part in _GT_SPLIT.split(gt):
        if part == MISSING:
            alleles.append(MISSING_ALLELE)
        elif _ALLELE_INDEX.fullmatch(part):
            alleles.append(int(part))
        else:
            raise VcfFormatError(f"Malformed GT '{gt}'")
    return alleles


def is_phased(gt: str) -> bool:
    return PHASED_SEPARATOR in gt


def render_gt(alleles: Sequence[int], phased: bool) -> str:
    sep = PHASED_SEPARATOR if phased else UNPHASED_SEPARATOR
    return sep.join(MISSING if a == MISSING_ALLELE else str(a) for a in alleles)


def remap_genotype(gt: str, remap: Sequence[int], source=None) -> str:
    """Translate the allele indices of *gt* through *remap*.

    Missing components stay missing and the phasing of *gt* is kept.
    """
    alleles = split_gt(gt)
    for i, allele in enumerate(alleles):
        if allele == MISSING_ALLELE:
            continue
        if allele >= len(remap):
            where = f" in input record at {source.locus_text()}" if source is not None else ""
            handle_critical_error(f"Invalid GT {gt}{where}", exc_cls=VcfFormatError)
        alleles[i] = remap[allele]
    return render_gt(alleles, is_phased(gt))


class FormatTransform(enum.Enum):
    """How a FORMAT value is carried from an input record into a merged record."""

    COPY_VERBATIM = "copy-verbatim"
    REMAP_GENOTYPE = "remap-genotype"

    @classmethod
    def for_key(cls, key: str) -> "FormatTransform":
        if key == FORMAT_GENOTYPE:
            return cls.REMAP_GENOTYPE
        return cls.COPY_VERBATIM

    def apply(self, value: str, remap: Sequence[int], source=None) -> str:
        if self is FormatTransform.REMAP_GENOTYPE:
            return remap_genotype(value, remap, source)
        return value


__all__ = [
    "PHASED_SEPARATOR",
    "UNPHASED_SEPARATOR",
    "MISSING_ALLELE",
    "FormatTransform",
    "is_phased",
    "remap_genotype",
    "render_gt",
    "split_gt",
]
