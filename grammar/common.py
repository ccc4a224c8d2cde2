import re


def group(*choices):
    return "(?:" + "|".join(choices) + ")"


def maybe(*choices):
    return group(*choices) + "?"


# Python literal syntax for numbers, with optional underscores between digits;
# signs are left to the grammar
DIGITS = r"[0-9](?:_?[0-9])*"
INTEGER = group(
    r"0[xX](?:_?[0-9a-fA-F])+",
    r"0[bB](?:_?[01])+",
    r"0[oO](?:_?[0-7])+",
    r"0(?:_?0)*",
    r"[1-9](?:_?[0-9])*",
)
EXPONENT = r"[eE][-+]?" + DIGITS
FLOAT = group(
    group(DIGITS + r"\." + maybe(DIGITS), r"\." + DIGITS) + maybe(EXPONENT),
    DIGITS + EXPONENT,
)
IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"


# named bounded patterns; `/integer/` in a production refers to the entry below
common_patterns: dict[str, re.Pattern] = {
    name: re.compile(source)
    for name, source in [
        ("integer", INTEGER),
        ("float", FLOAT),
        ("number", group(FLOAT, INTEGER)),
        ("digit", r"[0-9]"),
        ("letter", r"[A-Za-z]"),
        ("word", r"\w+"),
        ("identifier", IDENTIFIER),
    ]
}
