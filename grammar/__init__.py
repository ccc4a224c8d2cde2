from .cfg import (
    Grammar,
    NonterminalRef,
    ResolvedProduction,
    ResolvedSymbol,
    TerminalRef,
    validate,
)
from .common import common_patterns
from .core import (
    EPSILON,
    EPSILON_MARK,
    Action,
    GrammarDefinitionError,
    Literal,
    Marker,
    Nonterminal,
    Pattern,
    Production,
    Symbol,
    Terminal,
    Word,
    read_production,
)
from .left_recursion import (
    DEFAULT_TAIL_NAME,
    UngroundableNonterminalError,
    anti_left_recurse,
    anti_left_recurse_nonterminal,
    is_left_recursive,
)
