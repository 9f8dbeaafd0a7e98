"""
ISBN conversion and validation utilities.
Supports ISBN-10 to ISBN-13 conversion and vice versa.
"""

import re


class InvalidIsbnFormat(ValueError):
    """Raised when an identifier cannot be converted to the requested ISBN form."""


def normalize_isbn(isbn: str) -> str:
    """Remove hyphens and spaces from ISBN."""
    return isbn.replace("-", "").replace(" ", "")


def digits_only(value: str | None) -> str:
    """Strip everything but digits. Used for loose identifier comparison."""
    if not value:
        return ""
    return re.sub(r"\D", "", value)


def validate_isbn10(isbn: str) -> bool:
    """Validate ISBN-10 format and checksum."""
    isbn = normalize_isbn(isbn).upper()
    if len(isbn) != 10:
        return False
    if not isbn[:-1].isdigit() or not (isbn[-1].isdigit() or isbn[-1] == "X"):
        return False

    total = sum((10 - i) * int(isbn[i]) for i in range(10) if isbn[i] != "X")
    if isbn[-1] == "X":
        total += 10
    return total % 11 == 0


def validate_isbn13(isbn: str) -> bool:
    """Validate ISBN-13 format and checksum."""
    isbn = normalize_isbn(isbn)
    if len(isbn) != 13 or not isbn.isdigit():
        return False

    total = sum(int(isbn[i]) * (1 if i % 2 == 0 else 3) for i in range(12))
    check = (10 - (total % 10)) % 10
    return int(isbn[12]) == check


def isbn10_to_isbn13(isbn10: str) -> str:
    """
    Convert ISBN-10 to ISBN-13 by prefixing 978 and recomputing the check digit.
    Raises InvalidIsbnFormat if the input is not a 10 character ISBN.
    """
    isbn10 = normalize_isbn(isbn10).upper()

    if len(isbn10) != 10 or not isbn10[:9].isdigit():
        raise InvalidIsbnFormat(f"Not an ISBN-10: {isbn10!r}")
    if not (isbn10[9].isdigit() or isbn10[9] == "X"):
        raise InvalidIsbnFormat(f"Not an ISBN-10: {isbn10!r}")

    isbn13_base = "978" + isbn10[:9]

    total = sum(int(isbn13_base[i]) * (1 if i % 2 == 0 else 3) for i in range(12))
    check = (10 - (total % 10)) % 10

    return isbn13_base + str(check)


def isbn13_to_isbn10(isbn13: str) -> str:
    """
    Convert ISBN-13 to ISBN-10.
    Only ISBN-13s starting with 978 have an ISBN-10 form; 979 and other
    prefixes raise InvalidIsbnFormat instead of producing a wrong identifier.
    """
    isbn13 = normalize_isbn(isbn13)

    if len(isbn13) != 13 or not isbn13.isdigit():
        raise InvalidIsbnFormat(f"Not an ISBN-13: {isbn13!r}")
    if not isbn13.startswith("978"):
        raise InvalidIsbnFormat(f"ISBN-13 without an ISBN-10 form: {isbn13!r}")

    isbn10_base = isbn13[3:12]  # Remove 978 and check digit

    total = sum((10 - i) * int(isbn10_base[i]) for i in range(9))
    check = (11 - (total % 11)) % 11
    check_char = str(check) if check != 10 else "X"

    return isbn10_base + check_char


def isbn_variants(isbn: str) -> list[str]:
    """
    Lookup keys for an identifier: its ISBN-13 form first, then its ISBN-10 form.
    Forms that cannot be derived are left out.
    """
    isbn = normalize_isbn(isbn).upper()
    variants: list[str] = []

    if len(isbn) == 13:
        variants.append(isbn)
        try:
            variants.append(isbn13_to_isbn10(isbn))
        except InvalidIsbnFormat:
            pass
    elif len(isbn) == 10:
        try:
            variants.append(isbn10_to_isbn13(isbn))
        except InvalidIsbnFormat:
            pass
        variants.append(isbn)
    else:
        variants.append(isbn)

    return variants


def to_isbn10(isbn: str) -> str | None:
    """The ISBN-10 form of an identifier, if it has one."""
    isbn = normalize_isbn(isbn).upper()
    if len(isbn) == 10:
        return isbn
    try:
        return isbn13_to_isbn10(isbn)
    except InvalidIsbnFormat:
        return None


def is_isbn(value: str | None) -> bool:
    """Check that value is an ISBN-10 or a 978/979 ISBN-13 with a valid check digit."""
    if not value:
        return False
    clean = normalize_isbn(value).upper()
    if len(clean) == 10:
        return validate_isbn10(clean)
    elif len(clean) == 13:
        return clean.startswith(("978", "979")) and validate_isbn13(clean)
    return False
