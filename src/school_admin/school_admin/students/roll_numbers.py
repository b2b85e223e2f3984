from __future__ import annotations

# Checked in order; "Jr. KG" must win over the bare ordinal patterns.
_CLASS_CODES = (
    ("Jr. KG", "JKG"),
    ("Sr. KG", "SKG"),
    ("10th", "10"),
    ("1st", "01"),
    ("2nd", "02"),
    ("3rd", "03"),
    ("4th", "04"),
    ("5th", "05"),
    ("6th", "06"),
    ("7th", "07"),
    ("8th", "08"),
    ("9th", "09"),
)


def class_code(class_name: str) -> str:
    for needle, code in _CLASS_CODES:
        if needle in class_name:
            return code
    return "GEN"


def format_roll_number(class_name: str, section: str, sequence: int) -> str:
    """Roll number of the form <classCode><section><NNN>, e.g. 03A007."""
    return f"{class_code(class_name)}{section}{int(sequence):03d}"
