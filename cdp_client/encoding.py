"""
Binary encoding for unsigned EIP-1559 transactions.

Only the pieces needed to hand a raw ERC-20 transfer to the CDP signer:
RLP, minimal big-endian integers, and the transfer call-data. Nonce, fee and
gas fields are left empty; the remote signer fills them before broadcasting.
"""

from typing import Optional, Sequence, Union

from web3 import Web3

from cdp_client.constants import BASE_MAINNET, EIP1559_TX_TYPE, ERC20_TRANSFER_SELECTOR

RLPItem = Union[bytes, bytearray, Sequence["RLPItem"]]

MAX_UINT256 = 2**256 - 1


def int_to_min_bytes(value: int) -> bytes:
    """Encode a non-negative integer as big-endian bytes with no leading zeros.

    Zero encodes as the empty byte string, never ``b"\\x00"``.
    """
    if value < 0:
        raise ValueError(f"Cannot encode negative integer: {value}")
    if value == 0:
        return b""
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def hex_to_min_bytes(value: Optional[str]) -> bytes:
    """Convert a hex quantity to its minimal byte form.

    ``None``, ``""``, ``"0x"``, ``"0"`` and ``"00"`` all give ``b""``.
    """
    if not value:
        return b""
    clean = value[2:] if value.lower().startswith("0x") else value
    if clean in ("", "0", "00"):
        return b""
    if len(clean) % 2:
        clean = "0" + clean
    return bytes.fromhex(clean).lstrip(b"\x00")


def _encode_length(length: int, short_offset: int, long_offset: int) -> bytes:
    if length <= 55:
        return bytes([short_offset + length])
    length_bytes = int_to_min_bytes(length)
    return bytes([long_offset + len(length_bytes)]) + length_bytes


def rlp_encode(item: RLPItem) -> bytes:
    """RLP-encode a byte string or a (nested) list of byte strings.

    Raises:
        TypeError: If the item is neither bytes nor a list/tuple.
    """
    if isinstance(item, (bytes, bytearray)):
        item = bytes(item)
        if len(item) == 1 and item[0] < 0x80:
            return item
        return _encode_length(len(item), 0x80, 0xB7) + item
    if isinstance(item, (list, tuple)):
        payload = b"".join(rlp_encode(child) for child in item)
        return _encode_length(len(payload), 0xC0, 0xF7) + payload
    raise TypeError(f"RLP: unsupported type {type(item).__name__}")


def _address_bytes(address: str) -> bytes:
    if not Web3.is_address(address):
        raise ValueError(f"Invalid address: {address}")
    return bytes.fromhex(address[2:] if address.lower().startswith("0x") else address)


def encode_erc20_transfer(to: str, amount_atomic: int) -> str:
    """Build call-data for ERC-20 ``transfer(address,uint256)``.

    Args:
        to: Recipient address.
        amount_atomic: Amount in the token's smallest unit.

    Returns:
        0x-prefixed hex call-data: selector, padded address, padded amount.
    """
    if not 0 <= amount_atomic <= MAX_UINT256:
        raise ValueError(f"Amount out of uint256 range: {amount_atomic}")
    address = _address_bytes(to).hex().rjust(64, "0")
    amount = format(amount_atomic, "x").rjust(64, "0")
    return "0x" + ERC20_TRANSFER_SELECTOR + address + amount


def serialize_eip1559_tx(
    to: str,
    data: str,
    value: Optional[Union[int, str]] = None,
    chain_id: int = BASE_MAINNET,
) -> str:
    """Serialize an unsigned EIP-1559 transaction for the remote signer.

    Args:
        to: Target contract or account.
        data: 0x-prefixed call-data.
        value: Native value in wei, as int or hex string.
        chain_id: EIP-155 chain id.

    Returns:
        ``0x02`` followed by the hex RLP body.
    """
    if isinstance(value, int):
        value_bytes = int_to_min_bytes(value)
    else:
        value_bytes = hex_to_min_bytes(value)

    data_hex = data[2:] if data.lower().startswith("0x") else data
    fields = [
        int_to_min_bytes(chain_id),
        b"",  # nonce
        b"",  # maxPriorityFeePerGas
        b"",  # maxFeePerGas
        b"",  # gasLimit
        _address_bytes(to),
        value_bytes,
        bytes.fromhex(data_hex),
        [],  # accessList
    ]
    return "0x" + (bytes([EIP1559_TX_TYPE]) + rlp_encode(fields)).hex()
