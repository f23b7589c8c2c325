import re

import pytest

from intake_backend.services.filenames import generate_secure_filename, validate_filename

SECURE_NAME = re.compile(r"^\d{13}_[0-9a-f]{16}\.[A-Za-z0-9]+$")


@pytest.mark.parametrize(
    "name",
    ["photo.png", "1700000000000_0123456789abcdef.pdf", "a-b_c.d.txt", "README"],
)
def test_safe_names_pass(name):
    assert validate_filename(name) is True


@pytest.mark.parametrize(
    "name",
    [
        "",
        "../etc/passwd",
        "a..b",
        "/abs.png",
        "dir\\file.png",
        "dir/file.png",
        "with space.png",
        "semi;colon.png",
        "name.png\n",
        "ünïcode.png",
    ],
)
def test_unsafe_names_fail(name):
    assert validate_filename(name) is False


def test_secure_filename_keeps_only_the_extension():
    name = generate_secure_filename("My Vacation Photo.JPG")

    assert SECURE_NAME.match(name)
    assert name.endswith(".JPG")
    assert "Vacation" not in name
    assert validate_filename(name)


def test_secure_filename_strips_extension_to_alphanumerics():
    name = generate_secure_filename("evil.p$h/p")

    assert name.endswith(".php")
    assert validate_filename(name)


@pytest.mark.parametrize("original", ["noextension", "trailingdot.", "weird.$$$"])
def test_secure_filename_falls_back_to_bin(original):
    name = generate_secure_filename(original)

    assert name.endswith(".bin")
    assert original.split(".")[0] not in name


def test_secure_filenames_are_unique():
    names = {generate_secure_filename("a.png") for _ in range(50)}

    assert len(names) == 50
