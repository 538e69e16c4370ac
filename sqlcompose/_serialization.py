"""JSON encoding and decoding backed by msgspec."""

from typing import Any, Union

import msgspec

__all__ = ("decode_json", "encode_json")


def _enc_hook(value: Any) -> Any:
    return str(value)


_encoder = msgspec.json.Encoder(enc_hook=_enc_hook)
_decoder = msgspec.json.Decoder()


def encode_json(data: Any, *, as_bytes: bool = False) -> "Union[str, bytes]":
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: "Union[str, bytes]") -> Any:
    return _decoder.decode(data)
