"""In-memory model of a single VCF data line."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .logging_utils import RecordConsistencyError, VcfFormatError

MISSING = "."
FILTER_PASS = "PASS"

FORMAT_AND_SAMPLE_SEPARATOR = ":"
ID_FILTER_AND_INFO_SEPARATOR = ";"
ALT_CALL_INFO_SEPARATOR = ","
COLUMN_SEPARATOR = "\t"


class VcfRecord:
    """A single VCF record.

    Identity for merge purposes is the locus: ``sequence_name``, the 0-based
    ``start`` and ``length`` (the length of the reference allele). Everything
    else is filled in incrementally; every mutator returns the record itself so
    construction can be chained::

        VcfRecord("chr1", 99, "A").add_alt_call("G").set_quality("50")

    ``format_and_sample`` maps each FORMAT key to one value per sample, so
    ``GT:GQ  0|0:48  1|0:49`` is stored as ``{"GT": ["0|0", "1|0"],
    "GQ": ["48", "49"]}``.
    """

    def __init__(self, sequence_name: str, start: int, ref_call: str):
        if ref_call is None:
            raise RecordConsistencyError("Reference allele must not be None")
        self._sequence_name = sequence_name
        self._start = start
        self._ref_call = ref_call
        self._id: Optional[str] = None
        self._quality: Optional[str] = None
        self.alt_calls: List[str] = []
        self.filters: List[str] = []
        self.info: Dict[str, List[str]] = {}
        self.format_and_sample: Dict[str, List[str]] = {}
        self._num_samples = 0

    # Locus

    @property
    def sequence_name(self) -> str:
        return self._sequence_name

    @property
    def start(self) -> int:
        return self._start

    @property
    def length(self) -> int:
        return len(self._ref_call)

    @property
    def end(self) -> int:
        return self._start + self.length

    @property
    def one_based_start(self) -> int:
        return self._start + 1

    def overlaps(self, other) -> bool:
        """Return True if *other* shares at least one base with this record."""
        if other.sequence_name != self._sequence_name:
            return False
        return other.start < self.end and self._start < other.end

    def contains(self, sequence_name: str, pos: int) -> bool:
        """Return True if 0-based *pos* on *sequence_name* lies within this record."""
        return sequence_name == self._sequence_name and self._start <= pos < self.end

    def locus_text(self) -> str:
        return f"{self._sequence_name}:{self.one_based_start}-{self.end}"

    # ID, REF, ALT, QUAL

    @property
    def id(self) -> str:
        """The ID column text; callers split on ``;`` for multiple ids."""
        return MISSING if self._id is None else self._id

    def set_id(self, *ids: str) -> "VcfRecord":
        if not ids:
            self._id = None
        else:
            self._id = ID_FILTER_AND_INFO_SEPARATOR.join(ids)
        return self

    @property
    def ref_call(self) -> str:
        return self._ref_call

    def set_ref_call(self, ref: str) -> "VcfRecord":
        if ref is None:
            raise RecordConsistencyError("Reference allele must not be None")
        self._ref_call = ref
        return self

    def add_alt_call(self, alt_call: str) -> "VcfRecord":
        if alt_call == MISSING:
            raise VcfFormatError("Attempt to add missing value '.' as explicit ALT allele")
        self.alt_calls.append(alt_call)
        return self

    def get_allele(self, allele: int) -> Optional[str]:
        """Return the allele text for *allele*, or None for the missing index -1."""
        if allele < -1 or allele > len(self.alt_calls):
            raise VcfFormatError(f"Invalid allele number {allele}")
        if allele == -1:
            return None
        if allele == 0:
            return self._ref_call
        return self.alt_calls[allele - 1]

    @property
    def quality(self) -> str:
        return MISSING if self._quality is None else self._quality

    def set_quality(self, quality: Optional[str]) -> "VcfRecord":
        self._quality = quality
        return self

    # FILTER

    def add_filter(self, name: str) -> "VcfRecord":
        # A record either passes or lists the filters it failed.
        if FILTER_PASS in self.filters:
            self.filters.remove(FILTER_PASS)
        self.filters.append(name)
        return self

    def is_filtered(self) -> bool:
        return any(f not in (FILTER_PASS, MISSING) for f in self.filters)

    # INFO

    def add_info(self, key: str, *values: str) -> "VcfRecord":
        self.info.setdefault(key, []).extend(values)
        return self

    def set_info(self, key: str, *values: str) -> "VcfRecord":
        self.info[key] = list(values)
        return self

    def remove_info(self, key: str) -> "VcfRecord":
        self.info.pop(key, None)
        return self

    # FORMAT and samples

    @property
    def number_of_samples(self) -> int:
        return self._num_samples

    def set_number_of_samples(self, count: int) -> "VcfRecord":
        if count < 0:
            raise RecordConsistencyError(f"Invalid number of samples: {count}")
        self._num_samples = count
        return self

    @property
    def formats(self) -> List[str]:
        return list(self.format_and_sample)

    def has_format(self, key: str) -> bool:
        return key in self.format_and_sample

    def get_format(self, key: str) -> Optional[List[str]]:
        return self.format_and_sample.get(key)

    def remove_format(self, key: str) -> "VcfRecord":
        self.format_and_sample.pop(key, None)
        return self

    def add_format(self, key: str) -> "VcfRecord":
        """Declare a FORMAT key without setting any sample values."""
        self.format_and_sample.setdefault(key, [])
        return self

    def add_format_and_sample(self, key: str, value: str) -> "VcfRecord":
        """Append *value* as the next sample's value for *key*."""
        values = self.format_and_sample.get(key)
        if values is None:
            self.format_and_sample[key] = [value]
            return self
        if len(values) >= self._num_samples:
            raise RecordConsistencyError(
                f"Tried to insert more {key} format values than number of samples ({self._num_samples})"
            )
        values.append(value)
        return self

    def set_format_and_sample(self, key: str, value: str, sample_index: int) -> "VcfRecord":
        """Set *key* for one sample, creating the key with missing values if needed."""
        if not 0 <= sample_index < self._num_samples:
            raise RecordConsistencyError(f"Invalid sample index: {sample_index}")
        values = self.format_and_sample.get(key)
        if values is None:
            values = [MISSING] * self._num_samples
            self.format_and_sample[key] = values
        values[sample_index] = value
        return self

    def pad_format_and_sample(self, key: str) -> "VcfRecord":
        """Fill the remaining sample values of *key* with the missing marker."""
        values = self.format_and_sample.get(key)
        if values is not None and len(values) < self._num_samples:
            values.extend([MISSING] * (self._num_samples - len(values)))
        return self

    def remove_samples(self) -> "VcfRecord":
        self._num_samples = 0
        self.format_and_sample.clear()
        return self

    def get_sample_string(self, sample_number: int, key: str) -> Optional[str]:
        values = self.format_and_sample.get(key)
        if values is None:
            return None
        return values[sample_number]

    def get_sample_double(self, sample_number: int, key: str) -> Optional[float]:
        value = self.get_sample_string(sample_number, key)
        if value is None or value == MISSING:
            return None
        return float(value)

    def get_sample_integer(self, sample_number: int, key: str) -> Optional[int]:
        value = self.get_sample_string(sample_number, key)
        if value is None or value == MISSING:
            return None
        return int(value)

    # Serialization

    def _count_samples(self) -> int:
        count = None
        for key, values in self.format_and_sample.items():
            if count is None:
                count = len(values)
            elif len(values) != count:
                raise RecordConsistencyError(
                    f"not enough data for all samples, first size = {count}, "
                    f"current key = {key} count = {len(values)}"
                )
        return count or 0

    def _sample_text(self, index: int) -> str:
        # Trailing missing sub-fields are omitted.
        emitted: List[str] = []
        pending: List[str] = []
        for values in self.format_and_sample.values():
            value = values[index]
            if value == MISSING:
                pending.append(value)
            else:
                emitted.extend(pending)
                emitted.append(value)
                pending = []
        if not emitted:
            return MISSING
        return FORMAT_AND_SAMPLE_SEPARATOR.join(emitted)

    def _info_text(self) -> str:
        if not self.info:
            return MISSING
        entries = []
        for key, values in self.info.items():
            if values:
                entries.append(f"{key}={ALT_CALL_INFO_SEPARATOR.join(values)}")
            else:
                entries.append(key)
        return ID_FILTER_AND_INFO_SEPARATOR.join(entries)

    def to_vcf_line(self) -> str:
        """Render the record as a tab-separated VCF data line."""
        columns = [
            self._sequence_name,
            str(self.one_based_start),
            self.id,
            self._ref_call,
            _join_or_missing(self.alt_calls, ALT_CALL_INFO_SEPARATOR),
            self.quality,
            _join_or_missing(self.filters, ID_FILTER_AND_INFO_SEPARATOR),
            self._info_text(),
        ]
        counted = self._count_samples()
        if counted != self._num_samples:
            raise RecordConsistencyError(
                f"Number of samples ({self._num_samples}) disagrees with contents of VCF record ({counted})"
            )
        if self._num_samples > 0:
            columns.append(_join_or_missing(self.format_and_sample, FORMAT_AND_SAMPLE_SEPARATOR))
            columns.extend(self._sample_text(i) for i in range(self._num_samples))
        return COLUMN_SEPARATOR.join(columns)

    def __str__(self) -> str:
        return self.to_vcf_line()

    def __repr__(self) -> str:
        return f"VcfRecord({self._sequence_name!r}, {self._start}, {self._ref_call!r})"


def _join_or_missing(values: Iterable[str], separator: str) -> str:
    joined = separator.join(values)
    return joined if joined else MISSING


__all__ = [
    "MISSING",
    "FILTER_PASS",
    "FORMAT_AND_SAMPLE_SEPARATOR",
    "ID_FILTER_AND_INFO_SEPARATOR",
    "ALT_CALL_INFO_SEPARATOR",
    "VcfRecord",
]
