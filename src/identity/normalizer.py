"""Name normalization for roster strings and photo filenames.

Both sides are reduced to a "squashed" key: last name followed by first
name, lowercased, with whitespace and the characters ' , . - removed.
"Smith, John" and "SmithJohn_12345.jpg" both squash to "smithjohn".
"""

import re

_STRIP_CHARS = re.compile(r"[\s',.\-]")


def _strip(value: str) -> str:
    return _STRIP_CHARS.sub("", value.lower())


def parse_roster_name(roster_name: str | None) -> tuple[str, str]:
    """Split a "Last, First" roster string.

    Args:
        roster_name: Raw roster value

    Returns:
        Tuple of (first_name, last_name). Without a comma the whole
        string is the last name and the first name is empty.
    """
    if not roster_name:
        return "", ""
    last, _, first = roster_name.partition(",")
    return first.strip(), last.strip()


def squash_roster_name(roster_name: str | None) -> str:
    """Squash a roster string: "Smith, John" -> "smithjohn"."""
    first, last = parse_roster_name(roster_name)
    return _strip(last + first)


def filename_stem(filename: str | None) -> str:
    """Name part of a photo filename: "SmithJohn_12345.jpg" -> "SmithJohn".

    The extension is dropped at the last dot and the stem is cut at the
    first underscore; a leading dot or underscore is kept as part of the name.
    """
    if not filename:
        return ""
    dot = filename.rfind(".")
    without_ext = filename[:dot] if dot > 0 else filename
    underscore = without_ext.find("_")
    return without_ext[:underscore] if underscore > 0 else without_ext


def squash_filename(filename: str | None) -> str:
    """Squash a photo filename: "SmithJohn_12345.jpg" -> "smithjohn"."""
    return _strip(filename_stem(filename))


def squash(raw: str | None) -> str:
    """Squash either a roster string or a filename.

    Strings with a comma are treated as "Last, First" roster values,
    everything else as a filename. Never raises.
    """
    if not raw:
        return ""
    if "," in raw:
        return squash_roster_name(raw)
    return squash_filename(raw)
