"""In-memory VCF records and the engine that merges them.

This package models a single VCF data line (:class:`VcfRecord`) and merges
several records that describe the same reference span, possibly produced
against different sample headers, into one record with a consistent allele
numbering and sample ordering. Importing the package immediately verifies that
the runtime dependency :mod:`vcfpy` is available, since header collaborators
and FORMAT metadata are read through it.
"""

from __future__ import annotations


def _import_dependency(name: str):
    try:
        module = __import__(name)
    except ImportError as exc:  # pragma: no cover - exercised when dependency missing
        raise ModuleNotFoundError(
            f"The '{name}' package is required for vcf_record_merge. "
            f"Please install it with 'pip install {name}'."
        ) from exc
    return module


vcfpy = _import_dependency("vcfpy")

VCFPY_AVAILABLE = True

from .config import (  # noqa: E402
    DEFAULT_UNMERGEABLE_FORMAT_FIELDS,
    MergeSettings,
    allele_indexed_format_fields,
)
from .diagnostics import (  # noqa: E402
    MergeDiagnostics,
    get_multiple_records_for_sample_count,
    reset_multiple_records_for_sample_count,
)
from .headers import HeaderView, SampleHeader, VcfpyHeaderView, as_header_view  # noqa: E402
from .logging_utils import (  # noqa: E402
    MergeVCFError,
    RecordConsistencyError,
    VcfFormatError,
    configure_logging,
)
from .merging import merge_records, merge_records_with_same_ref  # noqa: E402
from .record import MISSING, VcfRecord  # noqa: E402

__all__ = [
    "vcfpy",
    "VCFPY_AVAILABLE",
    "DEFAULT_UNMERGEABLE_FORMAT_FIELDS",
    "MergeSettings",
    "allele_indexed_format_fields",
    "MergeDiagnostics",
    "get_multiple_records_for_sample_count",
    "reset_multiple_records_for_sample_count",
    "HeaderView",
    "SampleHeader",
    "VcfpyHeaderView",
    "as_header_view",
    "MergeVCFError",
    "RecordConsistencyError",
    "VcfFormatError",
    "configure_logging",
    "merge_records",
    "merge_records_with_same_ref",
    "MISSING",
    "VcfRecord",
]
