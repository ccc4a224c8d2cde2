# Grammars from chapter 2 of the dragon book, as (head, productions) pairs.

DIGITS = [f"'{digit}'" for digit in range(10)]

# Figure 2.16
GRAMMAR_STMT = [
    (
        "stmt",
        [
            "expr ;",
            "if ( expr ) stmt",
            "for ( optexpr ; optexpr ; optexpr ) stmt",
            "other",
        ],
    ),
    ("optexpr", ["ε", "expr"]),
]

# Figure 2.15, left-recursive
GRAMMAR_DIGIT_LIST = [
    ("expr", ["expr + term", "expr - term", "term"]),
    ("term", DIGITS),
]

GRAMMAR_DIGIT_LIST_RIGHT = [
    ("expr", ["term R"]),
    ("R", ["+ term R", "- term R", "ε"]),
    ("term", DIGITS),
]

# Exercise 2.1.5, with the print actions of the translation scheme
GRAMMAR_POSTFIX_SCHEME = [
    ("expr", ["term rest"]),
    (
        "rest",
        [
            "+ term {print('+')} rest",
            "- term {print('-')} rest",
            "ε",
        ],
    ),
    ("term", [f"{digit} {{print('{digit}')}}" for digit in range(10)]),
]

# Exercise 2.3.1, left-recursive with prefix actions
GRAMMAR_PREFIX_SCHEME = [
    ("expr", ["{print('+')} expr + term", "{print('-')} expr - term", "term"]),
    ("term", ["{print('*')} term * factor", "{print('/')} term / factor", "factor"]),
    ("factor", ["digit", "{print('(')} ( expr ) {print(')')}"]),
    ("digit", [f"{digit} {{print('{digit}')}}" for digit in range(10)]),
]

# Exercise 2.4.1
GRAMMAR_PREFIX = [("S", ["+ S S", "- S S", "a"])]
GRAMMAR_PARENS = [("S", ["( S ) S S", "ε"])]
GRAMMAR_ZEROS_ONES = [("S", ["0 S 1", "0 1"])]

GRAMMAR_ARITHMETIC = """
    expr   → expr + term | expr - term | term
    term   → term * factor | term / factor | factor
    factor → ( expr ) | /integer/ | /identifier/
"""
