import json

import pytest

from shieldpool.adapters.snarkjs_loader import (dump_groth16, is_groth16_proof,
                                                is_groth16_vk, load_groth16,
                                                load_json, split_proof_bundle)
from shieldpool.errors import (InvalidFieldElement, MalformedProof,
                               MalformedVerificationKey)
from shieldpool.verifiers.field import R


def test_load_json_sources(tmp_path):
    p = tmp_path / "x.json"
    p.write_text('{"a": 1}', encoding="utf-8")
    assert load_json(p) == {"a": 1}
    assert load_json(str(p)) == {"a": 1}
    assert load_json(b'["1"]') == ["1"]
    assert load_json('{"b": 2}') == {"b": 2}
    assert load_json({"c": 3}) == {"c": 3}
    with pytest.raises(ValueError):
        load_json("not json at all")


def test_shape_detection(groth16_case):
    vk = groth16_case.vk.to_json()
    pf = groth16_case.proof.to_json()
    assert is_groth16_vk(vk) and not is_groth16_vk(pf)
    assert is_groth16_proof(pf) and not is_groth16_proof(vk)
    assert is_groth16_proof({"proof": pf, "publicSignals": []})


def test_split_bundle():
    proof, publics = split_proof_bundle({"proof": {"pi_a": 1}, "publicSignals": ["5"]})
    assert proof == {"pi_a": 1} and publics == ["5"]
    proof, publics = split_proof_bundle({"pi_a": 1})
    assert publics is None
    with pytest.raises(MalformedProof):
        split_proof_bundle({"pi_a": 1, "publicSignals": "5"})


def test_load_groth16_from_files(tmp_path, groth16_case):
    vk_json, proof_json, public_json = dump_groth16(
        groth16_case.vk, groth16_case.proof, groth16_case.public_inputs
    )
    (tmp_path / "verification_key.json").write_text(json.dumps(vk_json))
    (tmp_path / "proof.json").write_text(json.dumps(proof_json))
    (tmp_path / "public.json").write_text(json.dumps(public_json))

    vk, proof, inputs = load_groth16(
        tmp_path / "verification_key.json", tmp_path / "proof.json", tmp_path / "public.json"
    )
    assert vk == groth16_case.vk
    assert proof == groth16_case.proof
    assert inputs == groth16_case.public_inputs


def test_load_groth16_from_bundle(groth16_case):
    bundle = {"proof": groth16_case.proof.to_json(), "publicSignals": ["33", "12345678901234567890"]}
    _, _, inputs = load_groth16(groth16_case.vk.to_json(), bundle)
    assert inputs == groth16_case.public_inputs


def test_load_groth16_errors(groth16_case):
    vk = groth16_case.vk.to_json()
    pf = groth16_case.proof.to_json()
    with pytest.raises(MalformedVerificationKey):
        load_groth16("{broken", pf, ["1", "2"])
    with pytest.raises(MalformedVerificationKey):
        load_groth16(pf, pf, ["1", "2"])
    with pytest.raises(MalformedProof):
        load_groth16(vk, vk, ["1", "2"])
    with pytest.raises(MalformedProof):
        load_groth16(vk, pf)
    with pytest.raises(InvalidFieldElement):
        load_groth16(vk, pf, [str(R), "1"])
