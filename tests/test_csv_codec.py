# tests/test_csv_codec.py

from __future__ import annotations

from taskpilot.tasks.csv_codec import decode_row, encode_row


def test_plain_fields_are_not_quoted() -> None:
    assert encode_row(["a", "b c", "", None]) == "a,b c,,"


def test_quotes_only_when_needed() -> None:
    assert encode_row(["x,y"]) == '"x,y"'
    assert encode_row(['say "hi"']) == '"say ""hi"""'
    assert encode_row(["line1\nline2"]) == '"line1\nline2"'
    assert encode_row(["semi;colon"]) == "semi;colon"


def test_decode_handles_quoted_commas_and_doubled_quotes() -> None:
    assert decode_row('a,"b,c","d ""e"" f",') == ["a", "b,c", 'd "e" f', ""]


def test_decode_inverts_encode_for_awkward_values() -> None:
    fields = ["id-1", 'He said "ok, fine"', "", "multi\nline, text", "tag;other"]
    assert decode_row(encode_row(fields)) == fields
