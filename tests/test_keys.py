"""Tests for HD key derivation"""

import pytest
from bip_utils import Bip32Slip10Secp256k1, Bip39MnemonicValidator

from pio_localnet.errors import InvalidKeyIndex, InvalidMnemonic, KeyDerivationError
from pio_localnet.keys import (
    address_from_public_key,
    base_hd_path,
    derive_accounts,
    derive_key,
    generate_mnemonic,
    hd_path,
    mnemonic_to_seed,
)

from conftest import TEST_MNEMONIC


def test_derivation_is_deterministic():
    first = derive_key(TEST_MNEMONIC, 0, 3)
    second = derive_key(TEST_MNEMONIC, 0, 3)
    assert first.public_key == second.public_key
    assert first.address == second.address


def test_distinct_addresses_per_index():
    addresses = {derive_key(TEST_MNEMONIC, 0, index).address for index in range(8)}
    assert len(addresses) == 8


def test_keyring_changes_the_key():
    assert derive_key(TEST_MNEMONIC, 0, 0).address != derive_key(TEST_MNEMONIC, 1, 0).address


def test_identity_shape():
    identity = derive_key(TEST_MNEMONIC, 0, 0)
    assert identity.index == 0
    assert identity.hd_path == "m/44'/1'/0'/0'/0'"
    assert len(identity.public_key) == 33
    assert identity.public_key[0] in (2, 3)
    assert identity.address.startswith("tp1")


def test_custom_prefix():
    assert derive_key(TEST_MNEMONIC, 0, 0, hrp="pb").address.startswith("pb1")


def test_derive_accounts_matches_single_derivation():
    accounts = derive_accounts(TEST_MNEMONIC, 3)
    assert [a.address for a in accounts] == [derive_key(TEST_MNEMONIC, 0, i).address for i in range(3)]


@pytest.mark.parametrize("keyring,account", [(0, -1), (-1, 0), (0, 1.5), ("0", 0), (0, True)])
def test_invalid_index(keyring, account):
    with pytest.raises(InvalidKeyIndex):
        derive_key(TEST_MNEMONIC, keyring, account)


def test_invalid_mnemonic():
    with pytest.raises(InvalidMnemonic):
        derive_key("not a real mnemonic phrase", 0, 0)
    with pytest.raises(KeyDerivationError):
        derive_key("", 0, 0)


def test_hd_path_template():
    assert hd_path(2, 7) == "m/44'/1'/0'/2'/7'"
    assert base_hd_path() == "m/44'/1'/0'/0'/{account_index}'"


def test_generated_mnemonic_is_valid_and_random():
    first = generate_mnemonic()
    second = generate_mnemonic()
    assert len(first.split()) == 24
    assert Bip39MnemonicValidator().IsValid(first)
    assert first != second


def test_address_matches_known_cosmos_vector():
    master = Bip32Slip10Secp256k1.FromSeed(mnemonic_to_seed(TEST_MNEMONIC))
    public_key = master.DerivePath("m/44'/118'/0'/0/0").PublicKey().RawCompressed().ToBytes()
    assert address_from_public_key(public_key, "cosmos") == "cosmos19rl4cm2hmr8afy4kldpxz3fka4jguq0auqdal4"
