import base64
import locale

import pytest

from tc_result_parser.encoding import (
    decode,
    decode_text,
    derive_filename,
    extension_from_type,
    is_binary,
    unique_name,
)


def test_base64_round_trip():
    data = bytes(range(256)) * 3
    body = base64.encodebytes(data).decode("ascii")

    assert decode(body, "base64", "utf-8") == data
    assert decode(body, "BASE64", "does-not-matter") == data


def test_base64_restores_missing_padding():
    body = base64.b64encode(b"ab").decode("ascii").rstrip("=")
    assert decode(body, "base64") == b"ab"


def test_quoted_printable_strips_soft_breaks_and_bom():
    body = "=EF=BB=BFHello =\nWorld=\n!\n"
    assert decode(body, "quoted-printable", "utf-8") == b"Hello World!\n"


def test_quoted_printable_decodes_escapes_in_charset():
    assert decode("Caf=C3=A9", "quoted-printable", "utf-8") == "Café".encode("utf-8")
    assert decode_text("Caf=E9", "Quoted-Printable", "iso-8859-1") == "Café"


def test_quoted_printable_utf16():
    body = "=FF=FEH=00i=00\n"

    assert decode_text(body, "quoted-printable", "utf-16") == "Hi\n"
    assert decode(body, "quoted-printable", "utf-16") == "Hi\n".encode("utf-16")


def test_quoted_printable_utf16_keeps_byte_order_across_lines():
    body = "=FE=FF=00A\n=00B\n"
    assert decode_text(body, "quoted-printable", "utf-16") == "A\nB\n"


def test_quoted_printable_unknown_charset_falls_back_to_utf8():
    assert decode_text("Caf=C3=A9", "quoted-printable", "no-such-charset") == "Café"


def test_other_encodings_use_platform_encoding():
    expected = "plain text".encode(locale.getpreferredencoding(False))
    assert decode("plain text", "7bit", "utf-8") == expected
    assert decode("plain text", "", "utf-8") == expected
    assert decode("plain text", None) == expected


def test_only_base64_is_binary():
    assert is_binary("base64")
    assert is_binary(" Base64 ")
    assert not is_binary("quoted-printable")
    assert not is_binary("")


@pytest.mark.parametrize("location,content_type,expected", [
    ("http://localhost/", "text/html", ("main", "html")),
    ("http://localhost/main.htm", "text/html", ("main", "htm")),
    ("http://localhost/images/shot.png", "image/png", ("shot", "png")),
    ("http://localhost/{6B0F-11}/_TestLog.xml", "text/xml", ("_TestLog", "xml")),
    ("http://localhost/photo", "image/jpeg", ("unknown", "jpg")),
    ("http://localhost/page?id", "application/octet-stream", ("unknown", "octet-stream")),
    ("", "", ("unknown", "dat")),
])
def test_derive_filename(location, content_type, expected):
    assert derive_filename(location, content_type) == expected


def test_extension_from_type():
    assert extension_from_type("image/pjpeg") == "jpg"
    assert extension_from_type("text/xml") == "xml"
    assert extension_from_type("garbage") == "dat"


def test_unique_name_appends_increasing_suffix(tmp_path):
    (tmp_path / "main.htm").write_text("existing")

    first = unique_name(tmp_path, "main", "htm")
    second = unique_name(tmp_path, "main", "htm")

    assert first == tmp_path / "main1.htm"
    assert second == tmp_path / "main2.htm"
    assert (tmp_path / "main.htm").read_text() == "existing"


def test_unique_name_never_repeats(tmp_path):
    paths = [unique_name(tmp_path, "shot", "png") for _ in range(5)]

    assert len(set(paths)) == 5
    assert paths[0] == tmp_path / "shot.png"
    assert all(p.exists() for p in paths)


def test_unique_name_missing_directory(tmp_path):
    with pytest.raises(OSError):
        unique_name(tmp_path / "missing", "main", "htm")
