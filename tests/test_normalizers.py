import pytest

from referly.normalizers import normalize_code, normalize_email, normalize_phone


def test_normalize_email():
    assert normalize_email("  Asha@Example.COM ") == "asha@example.com"
    assert normalize_email(None) == ""


@pytest.mark.parametrize(
    "raw, expected",
    [(None, None), ("", None), ("   ", None), (" abcd1234 ", "abcd1234")],
)
def test_normalize_code(raw, expected):
    assert normalize_code(raw) == expected


@pytest.mark.parametrize(
    "raw, region, expected",
    [
        ("+1 650-253-0000", "IN", "+16502530000"),
        ("020 7031 3000", "GB", "+442070313000"),
        ("not a phone", "IN", "not a phone"),
        (" 12 ", "IN", "12"),
        ("", "IN", None),
        (None, "IN", None),
    ],
)
def test_normalize_phone(raw, region, expected):
    assert normalize_phone(raw, region) == expected
