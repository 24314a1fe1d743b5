"""Tests for GT parsing and the FORMAT value transforms."""

from __future__ import annotations

import pytest

from vcf_record_merge.genotype import (
    FormatTransform,
    remap_genotype,
    render_gt,
    split_gt,
)
from vcf_record_merge.logging_utils import VcfFormatError


@pytest.mark.parametrize(
    "gt, expected",
    [
        ("0", [0]),
        (".", [-1]),
        ("0/1", [0, 1]),
        ("1|0", [1, 0]),
        ("./.", [-1, -1]),
        ("12/3", [12, 3]),
        ("0/1/2", [0, 1, 2]),
    ],
)
def test_split_gt(gt, expected):
    assert split_gt(gt) == expected


@pytest.mark.parametrize("gt", ["", "a/1", "0//1", "-1/0", "¹/0", "٣/0"])
def test_split_gt_rejects_malformed_values(gt):
    with pytest.raises(VcfFormatError):
        split_gt(gt)


def test_render_gt_uses_missing_marker():
    assert render_gt([-1, 2], phased=True) == ".|2"
    assert render_gt([0, -1], phased=False) == "0/."


def test_remap_genotype_keeps_phasing_and_missing():
    remap = [0, 2, 3]
    assert remap_genotype("1/2", remap) == "2/3"
    assert remap_genotype("2|.", remap) == "3|."
    assert remap_genotype(".", remap) == "."


def test_remap_genotype_out_of_range_is_format_error(make_record):
    source = make_record("A", ["C"])
    with pytest.raises(VcfFormatError, match="Invalid GT 0/2"):
        remap_genotype("0/2", [0, 1], source)


def test_transform_selection():
    assert FormatTransform.for_key("GT") is FormatTransform.REMAP_GENOTYPE
    assert FormatTransform.for_key("AD") is FormatTransform.COPY_VERBATIM
    assert FormatTransform.COPY_VERBATIM.apply("3,4", [0, 2]) == "3,4"
    assert FormatTransform.REMAP_GENOTYPE.apply("0|1", [0, 2]) == "0|2"
