"""
Tests for the snapshot codec: encryption round-trips, blob framing and the
failures that must surface as EncodingError / DecodingError.
"""

import base64
import json
import struct

import pytest

from boltpass import config
from boltpass.codec import SnapshotCodec, dumps_plain, loads_plain
from boltpass.errors import DecodingError, EncodingError


class TestRoundTrip:

    def test_decrypt_reverses_encrypt(self, codec, sample_records):
        assert codec.decrypt(codec.encrypt(sample_records)) == sample_records

    def test_empty_snapshot(self, codec):
        assert codec.decrypt(codec.encrypt([])) == []

    def test_unicode_payload(self, codec):
        records = [{"id": "u", "username": "zoë", "password": "пароль🔑", "notes": "日本語"}]
        assert codec.decrypt(codec.encrypt(records)) == records

    def test_order_is_preserved(self, codec):
        records = [{"id": str(i)} for i in range(50)]
        assert [r["id"] for r in codec.decrypt(codec.encrypt(records))] == [str(i) for i in range(50)]

    def test_fresh_nonce_per_blob(self, codec, sample_records):
        assert codec.encrypt(sample_records) != codec.encrypt(sample_records)

    def test_blob_hides_plaintext(self, codec, sample_records):
        blob = codec.encrypt(sample_records)
        assert "hunter2" not in blob
        assert "hunter2".encode() not in base64.b64decode(blob)

    def test_blob_starts_with_magic_and_version(self, codec):
        raw = base64.b64decode(codec.encrypt([]))
        assert raw[:4] == config.BLOB_MAGIC
        assert struct.unpack('<I', raw[4:8])[0] == config.BLOB_VERSION

    def test_codecs_with_same_secret_interoperate(self, sample_records):
        blob = SnapshotCodec().encrypt(sample_records)
        assert SnapshotCodec().decrypt(blob) == sample_records


class TestEncodingErrors:

    def test_non_serializable_payload(self, codec):
        with pytest.raises(EncodingError):
            codec.encrypt([{"id": "x", "payload": object()}])

    def test_nan_is_rejected(self, codec):
        with pytest.raises(EncodingError):
            codec.encrypt([{"id": "x", "score": float("nan")}])

    def test_snapshot_must_be_a_list(self, codec):
        with pytest.raises(EncodingError):
            codec.encrypt({"id": "x"})

    def test_lone_surrogate_is_an_encoding_error(self, codec):
        with pytest.raises(EncodingError) as exc_info:
            codec.encrypt([{"id": "x", "username": "\udcff"}])
        assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)


class TestDecodingErrors:

    def test_wrong_secret(self, codec, sample_records):
        blob = codec.encrypt(sample_records)
        other = SnapshotCodec(secret="rotated-secret")
        with pytest.raises(DecodingError):
            other.decrypt(blob)

    def test_tampered_ciphertext(self, codec, sample_records):
        raw = bytearray(base64.b64decode(codec.encrypt(sample_records)))
        raw[-1] ^= 0x01
        with pytest.raises(DecodingError):
            codec.decrypt(base64.b64encode(bytes(raw)).decode())

    def test_truncated_blob(self, codec, sample_records):
        raw = base64.b64decode(codec.encrypt(sample_records))
        with pytest.raises(DecodingError):
            codec.decrypt(base64.b64encode(raw[:-5]).decode())

    def test_trailing_bytes(self, codec, sample_records):
        raw = base64.b64decode(codec.encrypt(sample_records))
        with pytest.raises(DecodingError):
            codec.decrypt(base64.b64encode(raw + b"xx").decode())

    def test_wrong_magic(self, codec):
        raw = b"NOPE" + base64.b64decode(codec.encrypt([]))[4:]
        with pytest.raises(DecodingError):
            codec.decrypt(base64.b64encode(raw).decode())

    def test_wrong_version(self, codec):
        raw = bytearray(base64.b64decode(codec.encrypt([])))
        raw[4:8] = struct.pack('<I', 99)
        with pytest.raises(DecodingError, match="Version mismatch"):
            codec.decrypt(base64.b64encode(bytes(raw)).decode())

    @pytest.mark.parametrize("blob", ["", "not base64 at all!", "[]", json.dumps([{"id": "x"}]), "QUJD"])
    def test_garbage(self, codec, blob):
        with pytest.raises(DecodingError):
            codec.decrypt(blob)

    def test_non_string_blob(self, codec):
        with pytest.raises(DecodingError):
            codec.decrypt(b"bytes are not blobs")


class TestPlainSerialization:

    def test_loads_plain_accepts_arrays(self, sample_records):
        assert loads_plain(dumps_plain(sample_records)) == sample_records

    def test_dumps_plain_is_compact(self):
        assert dumps_plain([{"id": "a"}]) == '[{"id":"a"}]'

    @pytest.mark.parametrize("text", ['{"id": "x"}', '"just a string"', "42", "null", "{not json"])
    def test_loads_plain_rejects_non_arrays(self, text):
        with pytest.raises(DecodingError):
            loads_plain(text)
