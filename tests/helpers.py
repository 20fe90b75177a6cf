"""Test doubles and captured device records shared by the test modules."""

import io
from unittest.mock import Mock

# Seven consecutive records captured from a device stream.
REFERENCE_RECORDS = [
    bytes.fromhex("1900 D0CF5E82937B 12 0100 0254 03 FEF2 5A02 7A07 05 3A84 0B02 06BD"),
    bytes.fromhex("1900 D0CF5E82937B 12 0100 0254 03 FFF2 7702 7407 05 3B84 0B02 06CB"),
    bytes.fromhex("1900 D0CF5E82937B 12 0100 0254 03 FFF2 6302 7607 05 3C84 0B02 06C9"),
    bytes.fromhex("1900 D0CF5E82937B 12 0100 0254 03 15F3 7802 6607 05 3D84 0B02 06BE"),
    bytes.fromhex("1900 D0CF5E82937B 12 0100 0254 03 0EF3 7502 3807 05 3E84 0B02 06CB"),
    bytes.fromhex("1900 D0CF5E82937B 12 0100 0254 03 07F3 7B02 6507 05 3F84 0B02 06C9"),
    bytes.fromhex("1900 D0CF5E82937B 12 0100 0254 03 20F3 6F02 5B07 05 4084 0B02 06BE"),
]


class FakeSocket:
    """Socket stand-in serving a fixed byte string."""

    def __init__(self, data: bytes = b"") -> None:
        self.data = data
        self.closed = False
        self.timeout = "unset"
        self.options = {}
        self.stream = None

    def makefile(self, mode: str = "rb"):
        self.stream = io.BytesIO(self.data)
        return self.stream

    def settimeout(self, value) -> None:
        self.timeout = value

    def setsockopt(self, level, option, value) -> None:
        self.options[(level, option)] = value

    def close(self) -> None:
        self.closed = True


def ok_response():
    response = Mock()
    response.isError.return_value = False
    return response


def error_response():
    response = Mock()
    response.isError.return_value = True
    return response
