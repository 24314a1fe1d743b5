"""Tests for merging records that share a reference span."""

from __future__ import annotations

import logging

import pytest

from vcf_record_merge.headers import SampleHeader
from vcf_record_merge.logging_utils import RecordConsistencyError, VcfFormatError
from vcf_record_merge.merging import (
    build_allele_remap,
    merge_records_with_same_ref,
)


def test_single_record_merge_is_identity(make_record, diagnostics):
    record = make_record(
        "A",
        ["C", "G"],
        record_id="rs7",
        quality="40",
        filters=["PASS"],
        info={"DP": ["20"]},
        samples={"GT": ["0/1", "2|2"], "DP": ["10", "10"]},
    )
    header = SampleHeader(["S1", "S2"])

    merged = merge_records_with_same_ref([record], [header], header, diagnostics=diagnostics)

    assert merged is not record
    assert str(merged) == str(record)
    assert (merged.sequence_name, merged.start, merged.length) == ("chr1", 99, 1)


def test_merge_does_not_modify_inputs(make_record, diagnostics):
    first = make_record("A", ["C"], samples={"GT": ["0/1"]})
    second = make_record("A", ["G"], samples={"GT": ["1/1"]})
    before = (str(first), str(second))

    merge_records_with_same_ref(
        [first, second], [["S1"], ["S2"]], ["S1", "S2"], diagnostics=diagnostics
    )

    assert (str(first), str(second)) == before


def test_alleles_are_unioned_in_order_and_genotypes_remapped(make_record, diagnostics):
    first = make_record("A", ["C", "G"], samples={"GT": ["1/2"]})
    second = make_record("A", ["G", "T"], samples={"GT": ["1/2"]})

    merged = merge_records_with_same_ref(
        [first, second], [["S1"], ["S2"]], ["S1", "S2"], diagnostics=diagnostics
    )

    assert merged.alt_calls == ["C", "G", "T"]
    assert merged.get_format("GT") == ["1/2", "2/3"]


def test_allele_remap_tables_and_change_flag(make_record):
    first = make_record("A", ["C", "G"])
    second = make_record("A", ["G", "T"])

    remap = build_allele_remap([first, second], "A")

    assert remap.tables == [[0, 1, 2], [0, 2, 3]]
    assert remap.alleles_changed


def test_identical_allele_sets_do_not_change_numbering(make_record):
    remap = build_allele_remap([make_record("A", ["C"]), make_record("A", ["C"])], "A")
    assert remap.tables == [[0, 1], [0, 1]]
    assert not remap.alleles_changed


def test_alt_equal_to_ref_maps_to_reference(make_record, diagnostics):
    record = make_record("A", ["A", "T"], samples={"GT": ["1/2"]})

    remap = build_allele_remap([record], "A")
    merged = merge_records_with_same_ref([record], [["S1"]], ["S1"], diagnostics=diagnostics)

    assert remap.tables == [[0, 0, 1]]
    assert remap.alleles_changed
    assert merged.alt_calls == ["T"]
    assert merged.get_format("GT") == ["0/1"]


def test_disjoint_samples_are_padded_with_missing_values(make_record, diagnostics):
    first = make_record("A", ["C"], samples={"GT": ["0/1"], "DP": ["7"]})
    second = make_record("A", ["C"], samples={"GT": ["1|1"], "GQ": ["33"]})
    dest = SampleHeader(["S1", "S0", "S2", "S3"])

    merged = merge_records_with_same_ref(
        [first, second], [["S1"], ["S2"]], dest, diagnostics=diagnostics
    )

    assert merged.number_of_samples == 4
    assert merged.get_format("GT") == ["0/1", ".", "1|1", "."]
    assert merged.get_format("DP") == ["7", ".", ".", "."]
    assert merged.get_format("GQ") == [".", ".", "33", "."]
    assert str(merged).split("\t")[8:] == ["GT:DP:GQ", "0/1:7", ".", "1|1:.:33", "."]


def test_sample_order_follows_destination_header(make_record, diagnostics):
    record = make_record("A", ["C"], samples={"GT": ["0/0", "0/1", "1/1"]})

    merged = merge_records_with_same_ref(
        [record], [["A1", "B2", "C3"]], ["C3", "A1", "B2"], diagnostics=diagnostics
    )

    assert merged.get_format("GT") == ["1/1", "0/0", "0/1"]


def test_samples_missing_from_destination_are_dropped(make_record, diagnostics):
    record = make_record("A", ["C"], samples={"GT": ["0/1", "1/1"]})

    merged = merge_records_with_same_ref([record], [["S1", "S2"]], ["S2"], diagnostics=diagnostics)

    assert merged.get_format("GT") == ["1/1"]
    assert merged.number_of_samples == 1


def test_duplicate_sample_keeps_first_and_counts_once(make_record, diagnostics, warnings_seen):
    first = make_record("A", ["C"], samples={"GT": ["0/1"], "DP": ["11"]})
    second = make_record("A", ["C"], samples={"GT": ["1/1"], "DP": ["22"]})

    merged = merge_records_with_same_ref(
        [first, second], [["S1"], ["S1"]], ["S1"], diagnostics=diagnostics
    )

    assert merged.get_format("GT") == ["0/1"]
    assert merged.get_format("DP") == ["11"]
    assert diagnostics.multiple_records_for_sample_count == 1
    assert warnings_seen == ["Multiple records found at position: chr1:100 for sample: S1. Keeping first."]


def test_first_record_wins_for_quality_filters_and_info(make_record, diagnostics):
    first = make_record("A", ["C"], quality="10", filters=["q20"], info={"DP": ["5"]})
    second = make_record("A", ["C"], quality="99", filters=["PASS"], info={"DP": ["9"], "DB": []})

    merged = merge_records_with_same_ref([first, second], [[], []], [], diagnostics=diagnostics)

    assert merged.quality == "10"
    assert merged.filters == ["q20"]
    assert merged.info == {"DP": ["5"]}


def test_ids_are_unioned_without_duplicates(make_record, diagnostics):
    first = make_record("A", ["C"], record_id="rs1;rs2")
    second = make_record("A", ["C"], record_id="rs2;rs3")
    third = make_record("A", ["C"])

    merged = merge_records_with_same_ref(
        [first, second, third], [[], [], []], [], diagnostics=diagnostics
    )

    assert merged.id == "rs1;rs2;rs3"


def test_unmergeable_field_refuses_merge_when_alleles_change(make_record, diagnostics, caplog):
    first = make_record("A", ["C"], samples={"GT": ["0/1"], "AD": ["5,4"]})
    second = make_record("A", ["G"], samples={"GT": ["0/1"], "AD": ["6,2"]})

    with caplog.at_level(logging.DEBUG, logger="vcf_record_merge"):
        merged = merge_records_with_same_ref(
            [first, second],
            [["S1"], ["S2"]],
            ["S1", "S2"],
            unmergeable_format_fields={"AD"},
            drop_unmergeable=False,
            diagnostics=diagnostics,
        )

    assert merged is None
    assert any("Refusing to merge" in rec.message for rec in caplog.records)


def test_unmergeable_field_is_dropped_when_allowed(make_record, diagnostics):
    first = make_record("A", ["C"], samples={"GT": ["0/1"], "AD": ["5,4"]})
    second = make_record("A", ["G"], samples={"GT": ["0/1"], "AD": ["6,2"]})

    merged = merge_records_with_same_ref(
        [first, second],
        [["S1"], ["S2"]],
        ["S1", "S2"],
        unmergeable_format_fields={"AD"},
        drop_unmergeable=True,
        diagnostics=diagnostics,
    )

    assert merged is not None
    assert not merged.has_format("AD")
    assert merged.get_format("GT") == ["0/1", "0/2"]


def test_unmergeable_field_is_kept_when_alleles_unchanged(make_record, diagnostics):
    first = make_record("A", ["C"], samples={"GT": ["0/1"], "AD": ["5,4"]})
    second = make_record("A", ["C"], samples={"GT": ["1/1"], "AD": ["0,8"]})

    merged = merge_records_with_same_ref(
        [first, second],
        [["S1"], ["S2"]],
        ["S1", "S2"],
        unmergeable_format_fields={"AD"},
        drop_unmergeable=False,
        diagnostics=diagnostics,
    )

    assert merged.get_format("AD") == ["5,4", "0,8"]


def test_different_reference_span_is_fatal(make_record, diagnostics):
    first = make_record("A", ["C"])
    second = make_record("AT", ["A"])

    with pytest.raises(RecordConsistencyError, match="different reference span"):
        merge_records_with_same_ref([first, second], [[], []], [], diagnostics=diagnostics)


def test_different_start_is_fatal(make_record, diagnostics):
    first = make_record("A", ["C"], start=10)
    second = make_record("A", ["C"], start=11)

    with pytest.raises(RecordConsistencyError):
        merge_records_with_same_ref([first, second], [[], []], [], diagnostics=diagnostics)


def test_reference_disagreement_is_format_error(make_record, diagnostics, caplog):
    first = make_record("A", ["C"])
    second = make_record("G", ["C"])

    with caplog.at_level(logging.DEBUG, logger="vcf_record_merge"):
        with pytest.raises(VcfFormatError, match="disagree on what the reference bases"):
            merge_records_with_same_ref([first, second], [[], []], [], diagnostics=diagnostics)

    assert any(rec.levelno == logging.CRITICAL for rec in caplog.records)


def test_out_of_range_genotype_is_format_error(make_record, diagnostics):
    record = make_record("A", ["C"], samples={"GT": ["0/3"]})

    with pytest.raises(VcfFormatError, match="Invalid GT 0/3"):
        merge_records_with_same_ref([record], [["S1"]], ["S1"], diagnostics=diagnostics)


def test_empty_record_list_is_fatal(diagnostics):
    with pytest.raises(RecordConsistencyError):
        merge_records_with_same_ref([], [], [], diagnostics=diagnostics)


def test_record_header_count_mismatch_is_fatal(make_record, diagnostics):
    with pytest.raises(RecordConsistencyError):
        merge_records_with_same_ref([make_record("A", ["C"])], [], [], diagnostics=diagnostics)


def test_non_ascii_digit_genotype_is_format_error(make_record, diagnostics):
    record = make_record("A", ["C", "G", "T"], samples={"GT": ["٣/0"]})

    with pytest.raises(VcfFormatError, match="Malformed GT"):
        merge_records_with_same_ref([record], [["S1"]], ["S1"], diagnostics=diagnostics)
