"""Tests for the verification code generator."""

from collections import Counter

from otp_gateway.otp.generator import CODE_MAX, CODE_MIN, generate_code

SAMPLES = 10_000
BINS = 10


def test_code_is_six_digits():
    for _ in range(1_000):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()
        assert code[0] != "0"


def test_codes_stay_in_range_and_spread_uniformly():
    values = [int(generate_code()) for _ in range(SAMPLES)]

    assert min(values) >= CODE_MIN
    assert max(values) <= CODE_MAX

    width = (CODE_MAX - CODE_MIN + 1) // BINS
    counts = Counter((v - CODE_MIN) // width for v in values)
    expected = SAMPLES / BINS
    chi_square = sum((counts[b] - expected) ** 2 / expected for b in range(BINS))

    # 9 degrees of freedom; 40 is beyond the p = 1e-5 critical value.
    assert chi_square < 40, f"chi-square {chi_square:.1f} suggests a biased generator"


def test_codes_are_not_repeated_in_a_small_batch():
    codes = {generate_code() for _ in range(100)}
    # 100 draws from 900,000 values: a collision is possible but should be rare.
    assert len(codes) >= 98
