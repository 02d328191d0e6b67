"""Filename reconciliation and descriptor assembly."""

import pytest

from LinkAttach.FormatResolution.assembler import (
    MAX_FILENAME_LENGTH,
    assemble,
    assemble_malformed,
    reconcile_filename,
    sanitize_segment,
)
from LinkAttach.FormatResolution.classifications import DetectionMethod
from LinkAttach.FormatResolution.types import ResolutionDecision, ResourceReference


@pytest.mark.parametrize(
    "segment,extension,expected",
    [
        ("photo.png", ".png", "photo.png"),
        ("photo.PNG", ".png", "photo.PNG"),
        ("photo.jpeg", ".jpg", "photo.jpeg"),
        ("photo.bmp", ".png", "photo.png"),
        ("photo", ".png", "photo.png"),
        ("archive.tar.gz", ".gz", "archive.tar.gz"),
        ("notes", ".file", "notes.file"),
        ("report.docx", ".file", "report.file"),
    ],
)
def test_reconcile_filename(segment, extension, expected):
    assert reconcile_filename(segment, extension, 0) == expected


@pytest.mark.parametrize("segment", ["", None, "...", "///"])
def test_missing_segment_synthesizes_name(segment):
    assert reconcile_filename(segment, ".pdf", 2) == "link_3.pdf"


def test_unsafe_characters_replaced():
    assert sanitize_segment('x:y"z.png') == "x_y_z.png"
    assert reconcile_filename("a<b>", ".txt", 0) == "a_b_.txt"


def test_long_names_truncated_keep_extension():
    name = reconcile_filename("x" * 400, ".png", 0)
    assert len(name) == MAX_FILENAME_LENGTH
    assert name.endswith(".png")


def test_assemble_uses_url_and_decision():
    reference = ResourceReference.parse("https://cdn.example.com/img/cat%20pic?w=200")
    decision = ResolutionDecision(
        extension=".webp",
        confidence=0.95,
        method=DetectionMethod.CONTENT_SNIFF,
        succeeded=True,
    )
    descriptor = assemble(reference, decision, 0)
    assert descriptor.to_dict() == {
        "name": "cat pic.webp",
        "content": "https://cdn.example.com/img/cat%20pic?w=200",
        "contentType": "attachment/url",
    }


def test_assemble_root_path_uses_index():
    reference = ResourceReference.parse("https://example.com/")
    descriptor = assemble(reference, ResolutionDecision.fallback(), 4)
    assert descriptor.name == "link_5.file"


def test_assemble_malformed():
    descriptor = assemble_malformed("https://[broken/x", 1)
    assert descriptor.name == "link_2.file"
    assert descriptor.content == "https://[broken/x"
