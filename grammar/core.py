import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from .common import common_patterns

EPSILON_MARK = "ε"


class GrammarDefinitionError(ValueError):
    """Raised when a grammar literal cannot describe a usable grammar."""


class Symbol(ABC):
    """An item of a production, as written in the grammar literal.
    Each is identified by its kind and its name"""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.name))

    def __eq__(self, other):
        if not isinstance(other, Symbol):
            return NotImplemented
        return type(self) is type(other) and self.name == other.name

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class Word(Symbol):
    """A bare symbol; it refers to a nonterminal iff the grammar has a
    nonterminal with this head, otherwise it is a literal terminal."""

    def __repr__(self):
        return f"[bold yellow]{self.name}[/bold yellow]"


class Terminal(Symbol):
    @property
    def label(self) -> str:
        return self.name

    @abstractmethod
    def accepts(self, text: str) -> bool:
        ...

    @abstractmethod
    def accepts_span(self, code: str, start: int, end: int) -> bool:
        """Whether ``code[start:end]`` is a lexeme of this terminal."""

    @abstractmethod
    def match_length(self, code: str, start: int) -> int:
        """Length of the longest lexeme this terminal reads at ``start``, or 0"""

    def __repr__(self):
        return f"[bold blue]{self.label}[/bold blue]"


class Literal(Terminal):
    def accepts(self, text: str) -> bool:
        return text == self.name

    def accepts_span(self, code: str, start: int, end: int) -> bool:
        return end - start == len(self.name) and code.startswith(self.name, start)

    def match_length(self, code: str, start: int) -> int:
        return len(self.name) if code.startswith(self.name, start) else 0

    def __str__(self):
        for quote in ("'", '"', "`"):
            if quote not in self.name:
                return f"{quote}{self.name}{quote}"
        return self.name


class Pattern(Terminal):
    """A bounded pattern such as /[0-9]+/, matched against whole lexemes."""

    __slots__ = ("regex",)

    def __init__(self, source: str, regex: Optional[re.Pattern] = None) -> None:
        super().__init__(source)
        if regex is None:
            try:
                regex = re.compile(source)
            except re.error as e:
                raise GrammarDefinitionError(
                    f"invalid pattern /{source}/: {e}"
                ) from e
        if regex.fullmatch(""):
            raise GrammarDefinitionError(
                f"pattern /{source}/ matches the empty string; use {EPSILON_MARK} instead"
            )
        self.regex = regex

    def accepts(self, text: str) -> bool:
        return self.regex.fullmatch(text) is not None

    def accepts_span(self, code: str, start: int, end: int) -> bool:
        return self.regex.fullmatch(code, start, end) is not None

    def match_length(self, code: str, start: int) -> int:
        # the regex's own leftmost-greedy match, not the longest full match
        if (m := self.regex.match(code, start)) is None:
            return 0
        return m.end() - start

    @property
    def label(self) -> str:
        return f"/{self.name}/"

    def __str__(self):
        return self.label


class Marker(Symbol):
    def __repr__(self):
        return f"[bold cyan]{self.name}[/bold cyan]"


class Action(Symbol):
    """An inert `{ ... }` annotation; carried for display only."""

    def __repr__(self):
        return f"[dim]{self.name}[/dim]"


EPSILON = Marker(EPSILON_MARK)


class Production(tuple[Symbol, ...]):
    """An ordered sequence of symbols, as written.

    ``symbols`` drops actions and any ε written next to other symbols.
    A production whose only grammar item is ε is the epsilon production.
    """

    def __new__(cls, items: Iterable[Symbol] = ()) -> "Production":
        return tuple.__new__(cls, items)  # type: ignore

    @staticmethod
    def epsilon() -> "Production":
        return Production((EPSILON,))

    @property
    def symbols(self) -> tuple[Symbol, ...]:
        return tuple(
            item
            for item in self
            if not isinstance(item, Action) and item is not EPSILON
        )

    @property
    def is_epsilon(self) -> bool:
        return EPSILON in self and not self.symbols

    def head_symbol(self) -> Optional[Symbol]:
        for item in self:
            if not isinstance(item, Action):
                return item
        return None

    def without_head(self) -> "Production":
        """Drop the first grammar item, keeping every action."""
        for index, item in enumerate(self):
            if not isinstance(item, Action):
                return Production(self[:index] + self[index + 1 :])
        return self

    def append(self, symbol: Symbol) -> "Production":
        return Production(self + (symbol,))

    def __str__(self):
        return " ".join(str(item) for item in self)

    def __repr__(self):
        return " ".join(repr(item) for item in self)


def _strip_quotes(lexeme: str) -> str:
    return lexeme[1:-1]


# actions and quoted literals may contain whitespace; everything else,
# patterns included, is split on it. A bare `{` starts an action, so brace
# terminals must be quoted
_SYMBOL_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("action", re.compile(r"\{.*?\}", re.DOTALL)),
    ("literal", re.compile(r"'[^']+'|\"[^\"]+\"|`[^`]+`")),
    ("pattern", re.compile(r"/(?:\\.|[^/\\\s])+/")),
    ("word", re.compile(r"\S+")),
]


def iter_symbol_tokens(production_str: str) -> Iterator[tuple[str, str]]:
    production_str = production_str.strip()
    while production_str:
        for kind, pattern in _SYMBOL_PATTERNS:
            if m := pattern.match(production_str):
                yield kind, m.group(0)
                break
        else:
            raise GrammarDefinitionError(f"invalid symbol in {production_str!r}")
        production_str = production_str[m.end() :].strip()


def resolve_pattern(source: str) -> Pattern:
    if source in common_patterns:
        return Pattern(source, common_patterns[source])
    return Pattern(source)


def read_symbol(kind: str, lexeme: str) -> Symbol:
    match kind:
        case "action":
            return Action(lexeme)
        case "literal":
            return Literal(_strip_quotes(lexeme))
        case "pattern":
            return resolve_pattern(_strip_quotes(lexeme))
        case _:
            if lexeme == EPSILON_MARK:
                return EPSILON
            return Word(lexeme)


def read_production(production_str: str) -> Production:
    return Production(
        read_symbol(kind, lexeme) for kind, lexeme in iter_symbol_tokens(production_str)
    )


@dataclass(frozen=True, slots=True)
class Nonterminal:
    head: str
    productions: tuple[Production, ...]

    @staticmethod
    def from_strings(head: str, productions: Sequence[str]) -> "Nonterminal":
        if isinstance(productions, str):
            raise GrammarDefinitionError(
                f"productions of {head} must be a sequence of strings, "
                f"not the string {productions!r}"
            )
        return Nonterminal(head, tuple(read_production(p) for p in productions))

    def __str__(self):
        return f"{{{self.head} → {' | '.join(str(p) for p in self.productions)}}}"
