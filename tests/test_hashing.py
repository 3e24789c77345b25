import pytest

from btclib.hashing import MIN_TARGET, Hash, U256_MAX


def test_zero_hash():
    zero = Hash.zero()
    assert zero.to_data() == [0, 0, 0, 0]
    assert zero.as_bytes() == bytes(32)
    assert str(zero) == "0"


def test_words_are_little_endian():
    assert Hash(1).to_data() == [1, 0, 0, 0]
    assert Hash(1 << 64).to_data() == [0, 1, 0, 0]


def test_min_target_words_match_constant():
    assert Hash(MIN_TARGET).to_data() == [
        0xFFFF_FFFF_FFFF_FFFF,
        0xFFFF_FFFF_FFFF_FFFF,
        0xFFFF_FFFF_FFFF_FFFF,
        0x0000_FFFF_FFFF_FFFF,
    ]


def test_digest_is_deterministic_and_content_sensitive():
    assert Hash.digest({"a": 1}) == Hash.digest({"a": 1})
    assert Hash.digest({"a": 1}) != Hash.digest({"a": 2})


def test_data_round_trip():
    original = Hash.digest(["some", "data", 42])
    assert Hash.from_data(original.to_data()) == original


def test_bytes_and_display_agree():
    value = Hash.digest(b"payload")
    raw = value.as_bytes()
    assert len(raw) == 32
    assert raw[::-1].hex().lstrip("0") == str(value)


def test_digest_uses_to_data_of_objects():
    assert Hash.digest(Hash(7)) == Hash.digest([7, 0, 0, 0])
    assert Hash.digest([Hash(1), Hash(2)]) == Hash.digest([[1, 0, 0, 0], [2, 0, 0, 0]])


def test_matches_target_is_strict():
    assert Hash(5).matches_target(6)
    assert not Hash(5).matches_target(5)
    assert Hash(U256_MAX).matches_target(U256_MAX) is False


@pytest.mark.parametrize("value", [-1, U256_MAX + 1])
def test_out_of_range_rejected(value):
    with pytest.raises(ValueError):
        Hash(value)


def test_from_data_wrong_length_rejected():
    with pytest.raises(ValueError):
        Hash.from_data([1, 2, 3])


def test_from_data_word_too_large_rejected():
    with pytest.raises(ValueError):
        Hash.from_data([1 << 64, 0, 0, 0])


def test_unencodable_data_raises_type_error():
    with pytest.raises(TypeError):
        Hash.digest(object())


def test_hashes_are_ordered_by_value():
    assert sorted([Hash(3), Hash(1), Hash(2)]) == [Hash(1), Hash(2), Hash(3)]