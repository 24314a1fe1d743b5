"""Merge VCF records that describe the same reference span.

:func:`merge_records_with_same_ref` combines records anchored at one locus
into a single record laid out for a destination header:

1. every record must share the start, reference length and reference bases;
2. the ALT alleles are unioned in input order and each input gets a table
   translating its allele indices into the merged numbering;
3. QUAL, FILTER and INFO are taken from the first record;
4. every destination sample is filled from the first input whose header
   declares it, with GT values translated through that input's table;
5. when the allele numbering changed, allele-indexed FORMAT keys are either
   dropped or cause the merge to be refused (``None`` is returned).

:func:`merge_records` runs that merge for every reference length found among
its inputs and passes records through one at a time when a group is refused.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import MergeSettings, prepare_unmergeable_fields
from .diagnostics import MergeDiagnostics, default_diagnostics
from .genotype import FormatTransform
from .headers import HeaderView, as_header_view
from .logging_utils import (
    RecordConsistencyError,
    VcfFormatError,
    handle_critical_error,
    handle_non_critical_error,
    log_message,
)
from .record import ID_FILTER_AND_INFO_SEPARATOR, MISSING, VcfRecord


@dataclass
class AlleleRemap:
    """Merged ALT list plus one allele translation table per input record."""

    alt_calls: List[str] = field(default_factory=list)
    tables: List[List[int]] = field(default_factory=list)
    alleles_changed: bool = False


def _validate_locus(records: Sequence[VcfRecord]) -> str:
    """Check that *records* share one reference span and return its REF text."""
    if not records:
        handle_critical_error("Attempt to merge an empty set of records", exc_cls=RecordConsistencyError)
    first = records[0]
    ref_call = first.ref_call
    for record in records:
        if record.start != first.start or record.length != first.length:
            handle_critical_error(
                f"Attempt to merge records with different reference span at: {first.locus_text()}",
                exc_cls=RecordConsistencyError,
            )
        if record.ref_call != ref_call:
            handle_critical_error(
                f"Records at {first.locus_text()} disagree on what the reference bases should be! "
                f"({ref_call} != {record.ref_call})",
                exc_cls=VcfFormatError,
            )
    return ref_call


def _union_ids(records: Iterable[VcfRecord]) -> List[str]:
    unique: List[str] = []
    for record in records:
        for tok in record.id.split(ID_FILTER_AND_INFO_SEPARATOR):
            if tok and tok != MISSING and tok not in unique:
                unique.append(tok)
    return unique


def build_allele_remap(records: Sequence[VcfRecord], ref_call: str) -> AlleleRemap:
    """Union the ALT alleles of *records* and build per-record index tables.

    An ALT equal to the reference maps to allele 0. The numbering counts as
    changed when any allele moves or any record's ALT count differs from the
    merged count seen so far.
    """
    remap = AlleleRemap()
    for record in records:
        table = [0] * (len(record.alt_calls) + 1)
        for j, alt in enumerate(record.alt_calls):
            if alt == ref_call:
                table[j + 1] = 0
                remap.alleles_changed = True
                continue
            try:
                alt_index = remap.alt_calls.index(alt)
            except ValueError:
                alt_index = len(remap.alt_calls)
                remap.alt_calls.append(alt)
            table[j + 1] = alt_index + 1
            if j != alt_index:
                remap.alleles_changed = True
        if len(record.alt_calls) != len(remap.alt_calls):
            remap.alleles_changed = True
        remap.tables.append(table)
    return remap


def _sample_indices(headers: Sequence[HeaderView]) -> List[Dict[str, int]]:
    indices = []
    for header in headers:
        lookup: Dict[str, int] = {}
        for i, name in enumerate(header.ordered_sample_names()):
            lookup.setdefault(name, i)
        indices.append(lookup)
    return indices


def resolve_sample_contributors(
    dest_names: Sequence[str],
    headers: Sequence[HeaderView],
    merged: VcfRecord,
    diagnostics: MergeDiagnostics,
) -> List[Optional[Tuple[int, int]]]:
    """Pick, for each destination sample, the input record that supplies it.

    Returns one ``(record_index, sample_index)`` pair per destination slot, or
    None where no input declares the sample. Extra inputs declaring the same
    sample are counted on *diagnostics* and ignored.
    """
    indices = _sample_indices(headers)
    contributors: List[Optional[Tuple[int, int]]] = []
    for name in dest_names:
        chosen: Optional[Tuple[int, int]] = None
        for record_index, lookup in enumerate(indices):
            sample_index = lookup.get(name)
            if sample_index is None:
                continue
            if chosen is not None:
                diagnostics.record_duplicate_sample(merged.sequence_name, merged.one_based_start, name)
                continue
            chosen = (record_index, sample_index)
        contributors.append(chosen)
    return contributors


def _merge_format_values(
    merged: VcfRecord,
    records: Sequence[VcfRecord],
    remap: AlleleRemap,
    contributors: Sequence[Optional[Tuple[int, int]]],
) -> None:
    for dest_index, contributor in enumerate(contributors):
        if contributor is None:
            continue
        record_index, sample_index = contributor
        source = records[record_index]
        table = remap.tables[record_index]
        for key, values in source.format_and_sample.items():
            if sample_index >= len(values):
                handle_critical_error(
                    f"Record at {source.locus_text()} has no {key} value for sample {sample_index}",
                    exc_cls=RecordConsistencyError,
                )
            dest = merged.format_and_sample.setdefault(key, [])
            while len(dest) <= dest_index:
                dest.append(MISSING)
            dest[dest_index] = FormatTransform.for_key(key).apply(values[sample_index], table, source)
    for key in merged.formats:
        merged.pad_format_and_sample(key)


def _apply_unmergeable_veto(
    merged: VcfRecord,
    unmergeable_format_fields: Iterable[str],
    drop_unmergeable: bool,
) -> bool:
    """Drop or veto allele-indexed FORMAT keys; return False to refuse the merge."""
    for key in sorted(unmergeable_format_fields):
        if not merged.has_format(key):
            continue
        if not drop_unmergeable:
            log_message(
                f"Refusing to merge records at {merged.locus_text()}: FORMAT {key} depends on allele numbering",
                level=logging.DEBUG,
            )
            return False
        merged.remove_format(key)
    return True


def merge_records_with_same_ref(
    records: Sequence[VcfRecord],
    headers: Sequence,
    dest_header,
    unmergeable_format_fields: Optional[Iterable[str]] = None,
    drop_unmergeable: Optional[bool] = None,
    *,
    settings: Optional[MergeSettings] = None,
    diagnostics: Optional[MergeDiagnostics] = None,
) -> Optional[VcfRecord]:
    """Merge *records*, which share a reference span, into one new record.

    ``headers[i]`` describes the samples of ``records[i]``; *dest_header*
    fixes the sample order of the result. Returns None when the allele
    numbering changed and an unmergeable FORMAT key is present while
    *drop_unmergeable* is false. The inputs are never modified.

    Duplicate samples are counted on *diagnostics*. Without one, the
    process-wide session from :func:`~.diagnostics.default_diagnostics` is
    used; read and clear it with :func:`get_multiple_records_for_sample_count`
    and :func:`reset_multiple_records_for_sample_count`, or pass a
    :class:`MergeDiagnostics` per pipeline to keep counts separate.
    """
    settings = settings or MergeSettings()
    diagnostics = diagnostics or default_diagnostics()
    if unmergeable_format_fields is None:
        unmergeable = settings.unmergeable_format_fields
    else:
        unmergeable = prepare_unmergeable_fields(unmergeable_format_fields)
    if drop_unmergeable is None:
        drop_unmergeable = settings.drop_unmergeable
    if len(records) != len(headers):
        handle_critical_error(
            f"Got {len(records)} records but {len(headers)} headers to merge",
            exc_cls=RecordConsistencyError,
        )

    ref_call = _validate_locus(records)
    first = records[0]
    views = [as_header_view(h) for h in headers]
    dest_view = as_header_view(dest_header)

    merged = VcfRecord(first.sequence_name, first.start, ref_call)
    ids = _union_ids(records)
    if ids:
        merged.set_id(*ids)

    remap = build_allele_remap(records, ref_call)
    merged.alt_calls.extend(remap.alt_calls)

    # QUAL, FILTER and INFO come from the first record only.
    if first.quality != MISSING:
        merged.set_quality(first.quality)
    merged.filters.extend(first.filters)
    for key, values in first.info.items():
        merged.add_info(key, *values)

    dest_names = list(dest_view.ordered_sample_names())
    merged.set_number_of_samples(dest_view.sample_count())
    contributors = resolve_sample_contributors(dest_names, views, merged, diagnostics)
    _merge_format_values(merged, records, remap, contributors)

    if remap.alleles_changed and not _apply_unmergeable_veto(merged, unmergeable, drop_unmergeable):
        return None
    log_message(
        f"Merged {len(records)} record(s) at {merged.locus_text()} into {len(merged.alt_calls)} ALT allele(s)",
        level=logging.DEBUG,
    )
    return merged


def _partition_by_length(
    records: Sequence[VcfRecord], headers: Sequence
) -> Dict[int, List[Tuple[VcfRecord, object]]]:
    groups: Dict[int, List[Tuple[VcfRecord, object]]] = {}
    for record, header in zip(records, headers):
        groups.setdefault(record.length, []).append((record, header))
    return groups


def merge_records(
    records: Sequence[VcfRecord],
    headers: Sequence,
    dest_header,
    unmergeable_format_fields: Optional[Iterable[str]] = None,
    preserve_formats: Optional[bool] = None,
    *,
    settings: Optional[MergeSettings] = None,
    diagnostics: Optional[MergeDiagnostics] = None,
) -> List[VcfRecord]:
    """Merge records that start at the same position, one group per reference length.

    With *preserve_formats* false, unmergeable FORMAT keys are dropped so the
    group merge can proceed. Otherwise a group that would lose them is refused
    and each of its records is merged on its own instead.

    *diagnostics* is handed to every underlying merge and shares the default
    session described in :func:`merge_records_with_same_ref` when omitted.
    """
    settings = settings or MergeSettings()
    if preserve_formats is None:
        preserve_formats = settings.preserve_formats
    if len(records) != len(headers):
        handle_critical_error(
            f"Got {len(records)} records but {len(headers)} headers to merge",
            exc_cls=RecordConsistencyError,
        )

    merge_kwargs = dict(
        unmergeable_format_fields=unmergeable_format_fields,
        drop_unmergeable=not preserve_formats,
        settings=settings,
        diagnostics=diagnostics,
    )
    results: List[VcfRecord] = []
    for length, group in _partition_by_length(records, headers).items():
        group_records = [r for r, _ in group]
        group_headers = [h for _, h in group]
        merged = merge_records_with_same_ref(group_records, group_headers, dest_header, **merge_kwargs)
        if merged is not None:
            results.append(merged)
            continue
        log_message(
            f"Passing {len(group)} record(s) of length {length} at {group_records[0].locus_text()} through unmerged",
            level=logging.DEBUG,
        )
        for record, header in group:
            single = merge_records_with_same_ref([record], [header], dest_header, **merge_kwargs)
            if single is None:
                handle_non_critical_error(
                    f"Record at {record.locus_text()} cannot be written without its unmergeable FORMAT fields; skipping"
                )
                continue
            results.append(single)
    return results


__all__ = [
    "AlleleRemap",
    "build_allele_remap",
    "resolve_sample_contributors",
    "merge_records_with_same_ref",
    "merge_records",
]
