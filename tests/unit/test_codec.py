"""
Unit tests for the LSB text codec

Covers the current length-framed format, the legacy delimiter scan and the
failure modes of both.
"""

import tracemalloc

import numpy as np
import pytest

from stegotext import codec
from stegotext.errors import CapacityExceeded, DecodeError, InvalidLength, NoMessageFound
from stegotext.framing import (
    DELIMITER, MAGIC_HEADER, build_frame, carrier_indices, carrier_lsbs, pack_length,
)
from stegotext.raster import RasterBuffer


class TestFrame:
    """Test cases for the byte layout"""

    def test_layout(self):
        frame = build_frame('hi')

        assert frame[:6] == b'STEGO1'
        assert frame[6:10] == (2 + len(DELIMITER)).to_bytes(4, 'big')
        assert frame[10:] == b'hi$$END$$'

    def test_length_counts_utf8_bytes(self):
        frame = build_frame('€')
        assert int.from_bytes(frame[6:10], 'big') == 3 + 7


class TestEncode:
    """Test cases for encode()"""

    def test_hello_round_trip(self, blank_raster):
        assert codec.decode(codec.encode(blank_raster, 'hello')) == 'hello'

    def test_round_trip_noisy_cover(self, noisy_raster):
        text = 'The quick brown fox jumps over the lazy dog'
        assert codec.decode(codec.encode(noisy_raster, text)) == text

    def test_round_trip_unicode(self, noisy_raster):
        text = 'héllo wörld ✓ 日本語 🎉'
        assert codec.decode(codec.encode(noisy_raster, text)) == text

    def test_round_trip_empty_text(self, blank_raster):
        assert codec.decode(codec.encode(blank_raster, '')) == ''

    def test_round_trip_text_containing_delimiter(self, blank_raster):
        text = 'before$$END$$after'
        assert codec.decode(codec.encode(blank_raster, text)) == text

    def test_round_trip_multiline(self, noisy_raster):
        text = 'line one\nline two\r\n\ttabbed'
        assert codec.decode(codec.encode(noisy_raster, text)) == text

    def test_ten_by_ten_limit(self):
        raster = RasterBuffer.blank(10, 10)

        accepted = codec.encode(raster, 'a' * 20)
        assert codec.decode(accepted) == 'a' * 20

        with pytest.raises(CapacityExceeded) as exc_info:
            codec.encode(raster, 'a' * 21)
        assert exc_info.value.max_chars == 20
        assert 'Maximum capacity: 20 characters' in str(exc_info.value)

    def test_rejects_multibyte_overflow(self):
        raster = RasterBuffer.blank(10, 10)
        # 11 two-byte characters need 22 bytes of payload
        with pytest.raises(CapacityExceeded):
            codec.encode(raster, 'é' * 11)

    def test_zero_size_raster(self):
        with pytest.raises(CapacityExceeded) as exc_info:
            codec.encode(RasterBuffer(0, 0, b''), '')
        assert exc_info.value.max_chars == 0

    def test_input_not_modified(self, noisy_raster):
        before = bytes(noisy_raster.data)
        result = codec.encode(noisy_raster, 'do not touch the input')

        assert noisy_raster.data == before
        assert result is not noisy_raster
        assert result.size == noisy_raster.size

    def test_alpha_preserved(self, noisy_raster):
        result = codec.encode(noisy_raster, 'x' * 500)

        before = noisy_raster.to_array()[:, :, 3]
        after = result.to_array()[:, :, 3]
        assert np.array_equal(before, after)

    def test_only_lsbs_change(self, noisy_raster):
        result = codec.encode(noisy_raster, 'some secret text')

        before = np.frombuffer(noisy_raster.data, dtype=np.uint8)
        after = np.frombuffer(result.data, dtype=np.uint8)
        assert np.all((before ^ after) <= 1)

    def test_samples_after_frame_untouched(self, noisy_raster):
        text = 'short'
        result = codec.encode(noisy_raster, text)

        bit_count = len(build_frame(text)) * 8
        last = carrier_indices(len(noisy_raster.data), bit_count)[-1]
        assert result.data[last + 1:] == noisy_raster.data[last + 1:]

    def test_deterministic(self, noisy_raster):
        assert codec.encode(noisy_raster, 'same').data == codec.encode(noisy_raster, 'same').data


class TestDecode:
    """Test cases for decode()"""

    def test_blank_raster_has_no_message(self, blank_raster):
        with pytest.raises(NoMessageFound):
            codec.decode(blank_raster)

    def test_random_raster_has_no_message(self, noisy_raster):
        with pytest.raises(NoMessageFound):
            codec.decode(noisy_raster)

    def test_too_small_for_header(self):
        # 3x3 has 27 usable bits, the header needs 80
        with pytest.raises(NoMessageFound):
            codec.decode(RasterBuffer.blank(3, 3))

    def test_empty_raster(self):
        with pytest.raises(NoMessageFound):
            codec.decode(RasterBuffer(0, 0, b''))

    def test_declared_length_beyond_raster(self, blank_raster, raw_writer):
        raster = raw_writer(blank_raster, MAGIC_HEADER + pack_length(5000))

        with pytest.raises(InvalidLength) as exc_info:
            codec.decode(raster)
        assert exc_info.value.length == 5000
        # 64 * 64 * 3 bits = 1536 bytes, minus the 10 header bytes
        assert exc_info.value.limit == 1526

    def test_declared_length_absolute_ceiling(self, raw_writer):
        raster = RasterBuffer.blank(16, 16)
        raster = raw_writer(raster, MAGIC_HEADER + pack_length(0xFFFFFFFF))

        with pytest.raises(InvalidLength):
            codec.decode(raster)

    def test_invalid_utf8_payload(self, blank_raster, raw_writer):
        raster = raw_writer(blank_raster, MAGIC_HEADER + pack_length(3) + b'\xff\xfe\xfd')

        with pytest.raises(DecodeError):
            codec.decode(raster)

    def test_missing_delimiter_is_tolerated(self, blank_raster, raw_writer):
        # Documented quirk: the current format trusts the length field and
        # returns the payload as-is when the delimiter is absent
        raster = raw_writer(blank_raster, MAGIC_HEADER + pack_length(8) + b'hi there')

        assert codec.decode(raster) == 'hi there'

    def test_only_trailing_delimiter_stripped(self, blank_raster, raw_writer):
        body = b'a$$END$$b$$END$$'
        raster = raw_writer(blank_raster, MAGIC_HEADER + pack_length(len(body)) + body)

        assert codec.decode(raster) == 'a$$END$$b'


class TestLegacyDecode:
    """Test cases for the headerless legacy format"""

    def test_legacy_round_trip(self, blank_raster):
        raster = codec.encode_legacy(blank_raster, 'legacy message')
        assert codec.decode(raster) == 'legacy message'

    def test_legacy_on_noisy_cover(self, noisy_raster):
        raster = codec.encode_legacy(noisy_raster, 'written before headers existed')
        assert codec.decode(raster) == 'written before headers existed'

    def test_legacy_stops_at_first_delimiter(self, blank_raster, raw_writer):
        raster = raw_writer(blank_raster, b'first$$END$$second$$END$$')
        assert codec.decode(raster) == 'first'

    def test_legacy_non_ascii_is_read_bytewise(self, blank_raster):
        # Each UTF-8 byte becomes its own character in the legacy scan
        raster = codec.encode_legacy(blank_raster, 'café')
        assert codec.decode(raster) == 'caf\xc3\xa9'

    def test_legacy_skips_zero_bytes(self, blank_raster, raw_writer):
        raster = raw_writer(blank_raster, b'ab\x00\x00cd$$END$$')
        assert codec.decode(raster) == 'abcd'

    def test_legacy_control_bytes_kept(self, blank_raster, raw_writer):
        raster = raw_writer(blank_raster, b'tab\there$$END$$')
        assert codec.decode(raster) == 'tab\there'

    def test_legacy_without_delimiter(self, blank_raster, raw_writer):
        raster = raw_writer(blank_raster, b'no terminator here')
        with pytest.raises(NoMessageFound):
            codec.decode(raster)

    def test_legacy_safety_ceiling(self, blank_raster, monkeypatch):
        monkeypatch.setattr(codec, 'LEGACY_MAX_CHARS', 10)
        raster = codec.encode_legacy(blank_raster, 'x' * 50)

        with pytest.raises(NoMessageFound):
            codec.decode(raster)

    def test_legacy_capacity_check(self):
        with pytest.raises(CapacityExceeded):
            codec.encode_legacy(RasterBuffer.blank(4, 4), 'x' * 10)


class TestInspect:
    """Test cases for inspect()"""

    def test_current(self, blank_raster):
        info = codec.inspect(codec.encode(blank_raster, 'hello'))

        assert info.format == 'current'
        assert info.declared_length == 5 + len(DELIMITER)
        assert info.length_valid

    def test_legacy(self, blank_raster):
        info = codec.inspect(codec.encode_legacy(blank_raster, 'hello'))

        assert info.format == 'legacy'
        assert info.declared_length is None
        assert not info.length_valid

    def test_none(self):
        assert codec.inspect(RasterBuffer.blank(2, 2)).format == 'none'

    def test_invalid_length_reported(self, blank_raster, raw_writer):
        info = codec.inspect(raw_writer(blank_raster, MAGIC_HEADER + pack_length(99999)))

        assert info.format == 'current'
        assert info.declared_length == 99999
        assert not info.length_valid

    def test_decode_agrees_with_invalid_length(self, blank_raster, raw_writer):
        raster = raw_writer(blank_raster, MAGIC_HEADER + pack_length(99999))
        info = codec.inspect(raster)

        with pytest.raises(InvalidLength) as exc_info:
            codec.decode(raster)
        assert exc_info.value.length == info.declared_length
        assert exc_info.value.limit == info.max_length

    def test_declared_length_matches_decoded_body(self, noisy_raster):
        text = 'naïve café'
        raster = codec.encode(noisy_raster, text)

        info = codec.inspect(raster)
        assert codec.decode(raster) == text
        assert info.declared_length == len((text + DELIMITER).encode('utf-8'))


class TestCarriers:
    """Test cases for carrier sample selection"""

    @staticmethod
    def _reference_indices(sample_count):
        indices = np.arange(sample_count)
        return indices[indices % 4 != 3]

    @pytest.mark.parametrize('sample_count', [0, 1, 3, 4, 7, 10, 64, 403])
    def test_indices_skip_alpha(self, sample_count):
        expected = self._reference_indices(sample_count)

        np.testing.assert_array_equal(carrier_indices(sample_count), expected)

    def test_limit_truncates(self):
        expected = self._reference_indices(403)

        np.testing.assert_array_equal(carrier_indices(403, 50), expected[:50])
        np.testing.assert_array_equal(carrier_indices(403, 10_000), expected)

    def test_lsbs_follow_indices(self, noisy_raster):
        samples = np.frombuffer(noisy_raster.data, dtype=np.uint8)

        expected = samples[carrier_indices(len(samples))] & 1
        np.testing.assert_array_equal(carrier_lsbs(samples), expected)


class TestLargeRaster:
    """Decoding a short message must not scale with the raster size"""

    def test_decode_memory_is_bounded(self):
        raster = codec.encode(RasterBuffer(2000, 1500, bytes(2000 * 1500 * 4)), 'hello')

        tracemalloc.start()
        try:
            text = codec.decode(raster)
            peak = tracemalloc.get_traced_memory()[1]
        finally:
            tracemalloc.stop()

        assert text == 'hello'
        # The raster itself is 12 MB
        assert peak < 5 * 1024 * 1024

    def test_inspect_memory_is_bounded(self):
        raster = RasterBuffer(2000, 1500, bytes(2000 * 1500 * 4))

        tracemalloc.start()
        try:
            info = codec.inspect(raster)
            peak = tracemalloc.get_traced_memory()[1]
        finally:
            tracemalloc.stop()

        assert info.format == 'legacy'
        assert peak < 5 * 1024 * 1024
