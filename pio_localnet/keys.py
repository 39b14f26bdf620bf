"""
HD wallet helpers

Accounts are derived from a single BIP39 mnemonic along
m/44'/1'/0'/{keyring}'/{account}' and reported as bech32 addresses of the
hash160 of the compressed secp256k1 public key.
"""

import hashlib
import os
from typing import List

from bip_utils import (
    Bech32Encoder,
    Bip32Slip10Secp256k1,
    Bip39MnemonicGenerator,
    Bip39MnemonicValidator,
    Bip39SeedGenerator,
)
from bip_utils.utils.crypto import Hash160

from .errors import InvalidKeyIndex, InvalidMnemonic

HD_PATH_TEMPLATE = "m/44'/1'/0'/{keyring}'/{account}'"

TESTNET_HRP = "tp"
MAINNET_HRP = "pb"


class KeyIdentity:
    """Public identity of one derived account"""

    def __init__(self, index: int, hd_path: str, public_key: bytes, address: str):
        self.index = index
        self.hd_path = hd_path
        self.public_key = public_key
        self.address = address

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    def to_dict(self):
        return {
            "index": self.index,
            "hd_path": self.hd_path,
            "public_key": self.public_key_hex,
            "address": self.address,
        }

    def __repr__(self):
        return f"KeyIdentity(index={self.index}, address={self.address!r})"


def _check_index(kind: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidKeyIndex(kind, value)
    return value


def hd_path(keyring: int, account: int) -> str:
    return HD_PATH_TEMPLATE.format(
        keyring=_check_index("Keyring", keyring),
        account=_check_index("Key", account),
    )


def base_hd_path(keyring: int = 0) -> str:
    """HD path with the account index left as a placeholder, for display"""
    return HD_PATH_TEMPLATE.format(keyring=_check_index("Keyring", keyring), account="{account_index}")


def generate_mnemonic() -> str:
    """24 word mnemonic from hashed random entropy"""
    entropy = hashlib.sha256(os.urandom(32)).digest()
    return Bip39MnemonicGenerator().FromEntropy(entropy).ToStr()


def mnemonic_to_seed(mnemonic: str) -> bytes:
    if not mnemonic or not Bip39MnemonicValidator().IsValid(mnemonic):
        raise InvalidMnemonic()
    return Bip39SeedGenerator(mnemonic).Generate()


def address_from_public_key(public_key: bytes, hrp: str = TESTNET_HRP) -> str:
    return Bech32Encoder.Encode(hrp, Hash160.QuickDigest(public_key))


def derive_key(mnemonic: str, keyring: int, account: int, hrp: str = TESTNET_HRP) -> KeyIdentity:
    path = hd_path(keyring, account)
    master = Bip32Slip10Secp256k1.FromSeed(mnemonic_to_seed(mnemonic))
    public_key = master.DerivePath(path).PublicKey().RawCompressed().ToBytes()
    return KeyIdentity(
        index=account,
        hd_path=path,
        public_key=public_key,
        address=address_from_public_key(public_key, hrp),
    )


def derive_accounts(mnemonic: str, count: int, keyring: int = 0, hrp: str = TESTNET_HRP) -> List[KeyIdentity]:
    """Derive accounts 0..count-1, computing the seed and master key once"""
    _check_index("Keyring", keyring)
    master = Bip32Slip10Secp256k1.FromSeed(mnemonic_to_seed(mnemonic))
    identities = []
    for account in range(count):
        path = hd_path(keyring, account)
        public_key = master.DerivePath(path).PublicKey().RawCompressed().ToBytes()
        identities.append(KeyIdentity(account, path, public_key, address_from_public_key(public_key, hrp)))
    return identities
