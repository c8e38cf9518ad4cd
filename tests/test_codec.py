"""Property-based and unit tests for hashid encoding.

Feature: entity-hashids
"""

import string
import threading

import pytest
from hypothesis import given, strategies as st, settings

from entity_hashids.codec import HashidCodec, InvalidEncodingError, codec_for
from entity_hashids.config import HashidConfig

SCENARIO_CONFIG = HashidConfig(
    salt="abc", min_length=6, alphabet="0123456789abcdefghijklmnopqrstuvwxyz"
)


class TestCodecProperties:
    """Property-based tests for encoding and decoding."""

    @settings(max_examples=200)
    @given(
        id=st.integers(min_value=0, max_value=2**63),
        salt=st.text(max_size=30),
        min_length=st.integers(min_value=0, max_value=40),
    )
    def test_round_trip(self, id, salt, min_length):
        """For any non-negative id, decode(encode(id)) == id."""
        codec = HashidCodec(HashidConfig(salt=salt, min_length=min_length))

        assert codec.decode(codec.encode(id)) == id

    @settings(max_examples=200)
    @given(
        id=st.integers(min_value=0, max_value=2**63),
        min_length=st.integers(min_value=0, max_value=40),
    )
    def test_length_floor(self, id, min_length):
        """Encoded ids are never shorter than the configured minimum length."""
        codec = HashidCodec(HashidConfig(salt="floor", min_length=min_length))

        assert len(codec.encode(id)) >= min_length

    @settings(max_examples=100)
    @given(st.integers(min_value=0, max_value=2**63))
    def test_encoding_is_deterministic(self, id):
        """Two codecs with equal configuration produce identical hashids."""
        first = HashidCodec(SCENARIO_CONFIG)
        second = HashidCodec(SCENARIO_CONFIG)

        assert first.encode(id) == second.encode(id)
        assert first.encode(id) == first.encode(id)

    @settings(max_examples=100)
    @given(st.integers(min_value=0, max_value=2**63))
    def test_output_uses_configured_alphabet(self, id):
        """Encoded ids only contain characters from the alphabet."""
        hashid = HashidCodec(SCENARIO_CONFIG).encode(id)

        assert set(hashid) <= set(SCENARIO_CONFIG.alphabet)

    @settings(max_examples=300)
    @given(st.text(max_size=50))
    def test_arbitrary_input_never_decodes_to_wrong_integer(self, value):
        """Arbitrary strings either fail with InvalidEncodingError or are genuine."""
        codec = HashidCodec(SCENARIO_CONFIG)

        try:
            id = codec.decode(value)
        except InvalidEncodingError:
            return

        assert codec.encode(id) == value


class TestCodecUnitTests:
    """Unit tests for specific encoding scenarios."""

    def test_scenario_encode_one(self):
        """encode(1) under a fixed configuration decodes back to 1."""
        codec = HashidCodec(SCENARIO_CONFIG)

        hashid = codec.encode(1)

        assert len(hashid) >= 6
        assert codec.decode(hashid) == 1
        assert HashidCodec(SCENARIO_CONFIG).encode(1) == hashid

    def test_encode_zero(self):
        codec = HashidCodec(SCENARIO_CONFIG)

        assert codec.decode(codec.encode(0)) == 0

    def test_different_salts_produce_different_hashids(self):
        """Changing the salt changes the encoding."""
        first = HashidCodec(HashidConfig(salt="first salt", min_length=8))
        second = HashidCodec(HashidConfig(salt="second salt", min_length=8))

        for id in (1, 42, 12345, 999999999):
            assert first.encode(id) != second.encode(id)

    def test_hashid_from_other_salt_is_rejected(self):
        """A hashid produced under another salt does not decode."""
        first = HashidCodec(HashidConfig(salt="first salt", min_length=8))
        second = HashidCodec(HashidConfig(salt="second salt", min_length=8))

        with pytest.raises(InvalidEncodingError):
            second.decode(first.encode(12345))

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "garbage-not-a-real-code",
            "ABCDEF",
            "!!!!!!",
            "   ",
            "\x00\x01",
            "x" * 1000,
        ],
    )
    def test_invalid_strings_raise_invalid_encoding(self, value):
        codec = HashidCodec(SCENARIO_CONFIG)

        with pytest.raises(InvalidEncodingError):
            codec.decode(value)

    @pytest.mark.parametrize("value", [None, 42, b"abc", ["abc"]])
    def test_non_string_input_raises_invalid_encoding(self, value):
        codec = HashidCodec(SCENARIO_CONFIG)

        with pytest.raises(InvalidEncodingError):
            codec.decode(value)

    def test_hashid_with_several_numbers_is_rejected(self):
        """Only hashids carrying exactly one integer are accepted."""
        codec = HashidCodec(SCENARIO_CONFIG)
        several = codec.hashids.encode(1, 2, 3)

        with pytest.raises(InvalidEncodingError):
            codec.decode(several)

    def test_invalid_encoding_is_a_value_error(self):
        codec = HashidCodec(SCENARIO_CONFIG)

        with pytest.raises(ValueError):
            codec.decode("garbage-not-a-real-code")

    def test_try_decode_returns_none_for_invalid(self):
        codec = HashidCodec(SCENARIO_CONFIG)

        assert codec.try_decode("garbage-not-a-real-code") is None
        assert codec.try_decode("") is None
        assert codec.try_decode(codec.encode(7)) == 7

    @pytest.mark.parametrize("value", [-1, -100, 1.5, "1", True, None])
    def test_encode_rejects_non_natural_numbers(self, value):
        codec = HashidCodec(SCENARIO_CONFIG)

        with pytest.raises(ValueError):
            codec.encode(value)

    def test_default_configuration(self):
        codec = HashidCodec()

        hashid = codec.encode(5)

        assert set(hashid) <= set(string.ascii_letters + string.digits)
        assert codec.decode(hashid) == 5


class TestCodecCaching:
    """Tests for lazy construction and sharing of the hashid transform."""

    def test_transform_is_built_lazily_and_reused(self):
        codec = HashidCodec(SCENARIO_CONFIG)

        assert codec._hashids is None
        codec.encode(1)
        built = codec._hashids
        codec.decode(codec.encode(2))

        assert built is not None
        assert codec._hashids is built

    def test_concurrent_first_use_builds_one_transform(self):
        codec = HashidCodec(SCENARIO_CONFIG)
        barrier = threading.Barrier(8)
        transforms = []
        results = []

        def worker():
            barrier.wait()
            results.append(codec.encode(123))
            transforms.append(codec.hashids)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(results)) == 1
        assert all(transform is transforms[0] for transform in transforms)

    def test_codec_for_shares_codec_per_configuration(self):
        same = HashidConfig(
            salt="abc", min_length=6, alphabet="0123456789abcdefghijklmnopqrstuvwxyz"
        )

        assert codec_for(SCENARIO_CONFIG) is codec_for(same)
        assert codec_for(SCENARIO_CONFIG) is not codec_for(HashidConfig(salt="other"))
