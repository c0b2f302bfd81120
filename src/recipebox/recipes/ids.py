"""Recipe identifiers derived from free-form recipe names."""

import unicodedata

_UMLAUTS = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "ß": "ss",
}


def _is_kept(char: str) -> bool:
    if not 32 <= ord(char) < 127:
        return False
    return char.isalpha() or char.isdigit() or char.isspace() or char == "-"


def _collapse_spaces(text: str, replacement: str = "-") -> str:
    out: list[str] = []
    last_space = False
    for char in text:
        if char.isspace() or char == replacement:
            if not last_space:
                out.append(replacement)
            last_space = True
        else:
            out.append(char)
            last_space = False
    return "".join(out)


def to_id_string(name: str) -> str:
    """Turn a recipe name into its URL identifier.

    >>> to_id_string("Nasi Goreng")
    'nasi-goreng'
    >>> to_id_string("Grünkern")
    'gruenkern'
    """
    lowered = "".join(_UMLAUTS.get(c.lower(), c.lower()) for c in name)
    decomposed = unicodedata.normalize("NFKD", lowered)
    kept = "".join(c for c in decomposed if _is_kept(c))
    return _collapse_spaces(kept)
