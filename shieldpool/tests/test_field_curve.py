import pytest
from py_ecc.optimized_bn128 import G1, G2, multiply

from shieldpool.errors import ErrorCode, InvalidFieldElement
from shieldpool.verifiers.curve import G1_BYTE_LEN, G2_BYTE_LEN, G1Point, G2Point
from shieldpool.verifiers.field import (Q, R, Fq, Fr, inv_mod, is_canonical_bytes,
                                        mul_mod, parse_fq, parse_fr)


def test_moduli_are_bn254():
    assert R == 21888242871839275222246405745257275088548364400416034343698204186575808495617
    assert Q == 21888242871839275222246405745257275088696311157297823662689037894645226208583
    assert R < Q


@pytest.mark.parametrize("value", [R, R + 1, -1, "-5", "abc", "", True])
def test_parse_fr_rejects_out_of_range_and_junk(value):
    with pytest.raises(InvalidFieldElement) as ei:
        parse_fr(value)
    assert ei.value.code == ErrorCode.INVALID_FIELD_ELEMENT


def test_parse_accepts_decimal_hex_bytes():
    assert parse_fr("42") == 42
    assert parse_fr("0x2a") == 42
    assert parse_fr(b"\x2a") == 42
    assert parse_fr(R - 1) == R - 1
    # a valid base-field value can still be out of range for Fr
    assert parse_fq(R) == R
    with pytest.raises(InvalidFieldElement):
        parse_fq(Q)


def test_field_element_bytes_and_negation():
    x = Fr(12345)
    assert Fr.from_bytes(x.to_bytes()) == x
    assert Fr.from_bytes_le(x.to_bytes_le()) == x
    assert x.to_bytes_le() == x.to_bytes()[::-1]
    assert Fq(0).neg() == Fq(0)
    assert int(-Fq(1)) == Q - 1
    assert Fr.from_decimal("7").to_decimal() == "7"
    with pytest.raises(InvalidFieldElement):
        Fr.from_bytes(b"\x01" * 31)
    with pytest.raises(InvalidFieldElement):
        Fr(R)


def test_fr_and_fq_do_not_compare_equal():
    assert Fr(5) != Fq(5)
    assert Fr(5) == 5


def test_is_canonical_bytes():
    assert is_canonical_bytes((R - 1).to_bytes(32, "big"))
    assert not is_canonical_bytes(R.to_bytes(32, "big"))
    assert not is_canonical_bytes(b"\x00" * 31)


def test_modular_helpers():
    assert mul_mod(inv_mod(7, R), 7, R) == 1
    with pytest.raises(ZeroDivisionError):
        inv_mod(0, R)


def test_g1_bytes_and_decimal():
    p = G1Point.from_backend(multiply(G1, 5))
    enc = p.to_bytes()
    assert len(enc) == G1_BYTE_LEN
    assert G1Point.from_bytes(enc) == p
    assert G1Point.from_decimal(p.to_decimal()) == p
    assert p.is_on_curve()
    assert p.negate().negate() == p
    assert int(p.negate().y) == Q - int(p.y)


def test_g1_infinity():
    inf = G1Point.infinity()
    assert inf.is_infinity()
    assert inf.to_decimal() == ["0", "1", "0"]
    assert G1Point.from_decimal(["0", "1", "0"]).is_infinity()
    assert inf.negate() == inf
    assert inf.is_on_curve()


def test_g1_rejects_non_affine_and_bad_lengths():
    with pytest.raises(InvalidFieldElement):
        G1Point.from_decimal(["1", "2", "5"])
    with pytest.raises(InvalidFieldElement):
        G1Point.from_bytes(b"\x00" * 63)
    with pytest.raises(InvalidFieldElement):
        G1Point.from_ints(Q, 1)


def test_g1_off_curve_point_is_detected():
    assert not G1Point.from_ints(1, 3).is_on_curve()
    assert G1Point.from_ints(1, 2).is_on_curve()


def test_g2_byte_order_is_imaginary_first():
    p = G2Point.from_backend(multiply(G2, 3))
    enc = p.to_bytes()
    assert len(enc) == G2_BYTE_LEN
    assert enc[:32] == p.x[1].to_bytes()
    assert enc[32:64] == p.x[0].to_bytes()
    assert enc[64:96] == p.y[1].to_bytes()
    assert enc[96:] == p.y[0].to_bytes()
    assert G2Point.from_bytes(enc) == p


def test_g2_decimal_is_real_first():
    p = G2Point.from_backend(G2)
    dec = p.to_decimal()
    assert dec[0] == [str(int(p.x[0])), str(int(p.x[1]))]
    assert dec[2] == ["1", "0"]
    assert G2Point.from_decimal(dec) == p
    assert p.is_on_curve()


def test_g2_infinity_and_rejections():
    inf = G2Point.infinity()
    assert inf.is_infinity()
    assert G2Point.from_decimal(inf.to_decimal()).is_infinity()
    with pytest.raises(InvalidFieldElement):
        G2Point.from_decimal([["1", "0"], ["2", "0"], ["3", "0"]])
    with pytest.raises(InvalidFieldElement):
        G2Point.from_decimal([["1"], ["2", "0"]])
    assert not G2Point.from_ints(1, 0, 2, 0).is_on_curve()
