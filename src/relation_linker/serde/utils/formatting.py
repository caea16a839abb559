import typing


def english_enumerate(items: typing.Iterable[typing.Any], conj: str = ", and ") -> str:
    """
    Joins the string forms of ``items`` the way an English sentence would:
    ``a``, ``a and b`` (with ``conj=" and "``), ``a, b, and c``.
    """
    words = [str(item) for item in items]
    if len(words) < 2:
        return "".join(words)
    return ", ".join(words[:-1]) + conj + words[-1]
