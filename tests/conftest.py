"""Shared pytest fixtures for the vcf_record_merge test suite."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from vcf_record_merge import logging_utils
from vcf_record_merge.diagnostics import MergeDiagnostics
from vcf_record_merge.record import VcfRecord


def build_record(
    ref: str = "A",
    alts: Sequence[str] = (),
    *,
    chrom: str = "chr1",
    start: int = 99,
    record_id: Optional[str] = None,
    quality: Optional[str] = None,
    filters: Sequence[str] = (),
    info: Optional[Dict[str, List[str]]] = None,
    samples: Optional[Dict[str, List[str]]] = None,
    sample_count: Optional[int] = None,
) -> VcfRecord:
    """Build a record the way a parser would, one column at a time."""
    record = VcfRecord(chrom, start, ref)
    if record_id is not None:
        record.set_id(record_id)
    for alt in alts:
        record.add_alt_call(alt)
    record.set_quality(quality)
    for name in filters:
        record.add_filter(name)
    for key, values in (info or {}).items():
        record.add_info(key, *values)
    samples = samples or {}
    if sample_count is None:
        sample_count = max((len(v) for v in samples.values()), default=0)
    record.set_number_of_samples(sample_count)
    for key, values in samples.items():
        for value in values:
            record.add_format_and_sample(key, value)
    return record


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture(autouse=True)
def propagate_merge_logs(monkeypatch):
    """Let caplog see records emitted on the package logger."""
    monkeypatch.setattr(logging_utils.logger, "propagate", True)


@pytest.fixture
def warnings_seen() -> List[str]:
    return []


@pytest.fixture
def diagnostics(warnings_seen) -> MergeDiagnostics:
    return MergeDiagnostics(warn=warnings_seen.append)
