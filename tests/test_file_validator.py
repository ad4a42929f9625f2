import pytest

from storefront.services.files import AVATAR, PRODUCT_IMAGE, LocalFile, format_file_size, validate_file, validate_files
from storefront.services.files.validator import MIB, invalid_files


def _file(name, content_type, size):
    return LocalFile(name=name, content_type=content_type, data=b"x" * size)


def test_product_image_size_boundary():
    assert validate_file(_file("a.png", "image/png", 2 * MIB), PRODUCT_IMAGE).valid
    result = validate_file(_file("a.png", "image/png", 2 * MIB + 1), PRODUCT_IMAGE)
    assert not result.valid
    assert result.errors == ["file size (2 MB) exceeds 2 MB limit"]


def test_avatar_limit_is_one_mebibyte():
    assert validate_file(_file("me.jpg", "image/jpeg", MIB), AVATAR).valid
    assert not validate_file(_file("me.jpg", "image/jpeg", MIB + 1), AVATAR).valid


def test_errors_accumulate_in_type_extension_size_order():
    result = validate_file(_file("b.gif", "image/gif", 3 * MIB), PRODUCT_IMAGE)
    assert [e.split(":")[0].split(" (")[0] for e in result.errors] == [
        "disallowed type",
        "disallowed extension",
        "file size",
    ]


def test_empty_file_is_reported_as_size_error():
    result = validate_file(_file("a.webp", "image/webp", 0), PRODUCT_IMAGE)
    assert result.errors == ["file is empty"]


def test_extension_is_case_insensitive():
    assert validate_file(_file("PHOTO.JPEG", "image/jpeg", 10), PRODUCT_IMAGE).valid


def test_validate_files_keys_by_name():
    results = validate_files(
        [_file("a.png", "image/png", 500 * 1024), _file("b.gif", "image/gif", 100 * 1024)],
        PRODUCT_IMAGE,
    )
    assert list(results) == ["a.png", "b.gif"]
    assert results["a.png"].valid
    assert not results["b.gif"].valid


def test_invalid_files_keeps_files_sharing_a_name():
    bad = _file("a.png", "image/gif", 10)
    good = _file("a.png", "image/png", 10)
    assert list(validate_files([bad, good], PRODUCT_IMAGE)) == ["a.png"]

    problems = invalid_files([bad, good], PRODUCT_IMAGE)
    assert [(file, result.errors) for file, result in problems] == [(bad, ["disallowed type: image/gif"])]


@pytest.mark.parametrize(
    ("size", "expected"),
    [(0, "0 Bytes"), (512, "512 Bytes"), (1536, "1.5 KB"), (2 * MIB, "2 MB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_local_file_from_path_guesses_content_type(tmp_path):
    path = tmp_path / "shot.png"
    path.write_bytes(b"\x89PNG")
    file = LocalFile.from_path(path)
    assert file.content_type == "image/png"
    assert file.size == 4
    assert file.extension == ".png"
