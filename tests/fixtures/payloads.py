"""Sample payloads with well-known leading signatures."""

from __future__ import annotations

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
GIF_BYTES = b"GIF89a" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\n" + b"0" * 64
ZIP_BYTES = b"PK\x03\x04\x14\x00\x00\x00\x08\x00" + b"\x00" * 64
HTML_BYTES = b"<!DOCTYPE html>\n<html><head><title>t</title></head><body></body></html>"
SVG_BYTES = b'<?xml version="1.0"?>\n<svg xmlns="http://www.w3.org/2000/svg"></svg>'
TEXT_BYTES = b"Quarterly numbers\nrevenue,cost\n10,4\n"
BINARY_NOISE = bytes([0x01, 0x80, 0xFE, 0x03, 0x9C, 0x00, 0xC7, 0x11]) * 64

__all__ = [
    "PNG_BYTES",
    "JPEG_BYTES",
    "GIF_BYTES",
    "PDF_BYTES",
    "ZIP_BYTES",
    "HTML_BYTES",
    "SVG_BYTES",
    "TEXT_BYTES",
    "BINARY_NOISE",
]
