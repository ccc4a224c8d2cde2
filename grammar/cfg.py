import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from more_itertools import split_at, unique_everseen
from typeguard import CollectionCheckStrategy, typechecked

from .core import (
    EPSILON_MARK,
    GrammarDefinitionError,
    Literal,
    Nonterminal,
    Production,
    Symbol,
    Terminal,
    Word,
    iter_symbol_tokens,
    read_symbol,
)


@dataclass(frozen=True, slots=True)
class TerminalRef:
    terminal: Terminal

    def __str__(self):
        return self.terminal.label


@dataclass(frozen=True, slots=True)
class NonterminalRef:
    head: str
    index: int

    def __str__(self):
        return self.head


ResolvedSymbol = TerminalRef | NonterminalRef


@dataclass(frozen=True, slots=True)
class ResolvedProduction:
    production: Production
    symbols: tuple[ResolvedSymbol, ...]

    @property
    def is_epsilon(self) -> bool:
        return self.production.is_epsilon


def validate(nonterminals: Iterable[Nonterminal]) -> None:
    """Ensure that every Nonterminal has at least one production.

    Also rejects an empty grammar, blank or duplicate heads and productions
    made of nothing but actions.

    :raises GrammarDefinitionError: on the first offending nonterminal
    """
    nonterminals = tuple(nonterminals)
    if not nonterminals:
        raise GrammarDefinitionError("grammar must have at least one nonterminal")

    seen: set[str] = set()
    for nonterminal in nonterminals:
        head = nonterminal.head
        if not head or head.split() != [head] or head == EPSILON_MARK:
            raise GrammarDefinitionError(f"invalid nonterminal head {head!r}")
        if head in seen:
            raise GrammarDefinitionError(f"nonterminal {head} is defined twice")
        seen.add(head)
        if not nonterminal.productions:
            raise GrammarDefinitionError(f"Nonterminal {head} with no productions")
        for production in nonterminal.productions:
            if not production.symbols and not production.is_epsilon:
                raise GrammarDefinitionError(
                    f"empty production {head} → {production!s}; "
                    f"write {EPSILON_MARK} for the empty alternative"
                )


class Grammar(tuple[Nonterminal, ...]):
    """An ordered, immutable sequence of nonterminals.

    The first nonterminal is the start symbol. A bare symbol is a terminal
    iff no nonterminal has it as head; this is resolved once, on construction,
    into ``TerminalRef``/``NonterminalRef`` values so parsing never has to scan
    the grammar again.
    """

    def __new__(cls, nonterminals: Iterable[Nonterminal]) -> "Grammar":
        nonterminals = tuple(nonterminals)
        validate(nonterminals)
        grammar = tuple.__new__(cls, nonterminals)
        grammar._resolve()
        return grammar

    def _resolve(self) -> None:
        heads = {nonterminal.head: index for index, nonterminal in enumerate(self)}
        terminals: list[Terminal] = []
        resolved: list[tuple[ResolvedProduction, ...]] = []

        for nonterminal in self:
            productions = []
            for production in nonterminal.productions:
                refs: list[ResolvedSymbol] = []
                for symbol in production.symbols:
                    if isinstance(symbol, Word) and symbol.name in heads:
                        refs.append(NonterminalRef(symbol.name, heads[symbol.name]))
                    else:
                        terminal = (
                            symbol
                            if isinstance(symbol, Terminal)
                            else Literal(symbol.name)
                        )
                        terminals.append(terminal)
                        refs.append(TerminalRef(terminal))
                productions.append(ResolvedProduction(production, tuple(refs)))
            resolved.append(tuple(productions))

        object.__setattr__(self, "heads", heads)
        object.__setattr__(self, "resolved", tuple(resolved))
        object.__setattr__(self, "terminals", tuple(unique_everseen(terminals)))

    def __setattr__(self, key, value):
        raise AttributeError("Cannot modify grammar; build a new one instead")

    @property
    def start(self) -> Nonterminal:
        return self[0]

    def index_of(self, head: str) -> int:
        try:
            return self.heads[head]
        except KeyError:
            raise KeyError(f"no nonterminal {head} in grammar") from None

    def nonterminal(self, head: str) -> Nonterminal:
        return self[self.index_of(head)]

    def is_nonterminal(self, symbol: Symbol) -> bool:
        return isinstance(symbol, Word) and symbol.name in self.heads

    def iter_productions(self) -> Iterator[tuple[Nonterminal, Production]]:
        for nonterminal in self:
            for production in nonterminal.productions:
                yield nonterminal, production

    @staticmethod
    @typechecked(collection_check_strategy=CollectionCheckStrategy.ALL_ITEMS)
    def from_pairs(pairs: Sequence[tuple[str, Sequence[str]]]) -> "Grammar":
        """Build a grammar from ``(head, [production, ...])`` pairs, where each
        production is a whitespace separated string of symbols."""
        return Grammar(
            Nonterminal.from_strings(head, productions) for head, productions in pairs
        )

    @staticmethod
    def from_str(grammar_str: str) -> "Grammar":
        return _parse_grammar(grammar_str)

    def __str__(self) -> str:
        from utils.pretty import format_grammar

        return format_grammar(self)

    def __repr__(self) -> str:
        return "\n".join(
            f"[bold red]{nonterminal.head}[/bold red] → {production!r}"
            for nonterminal, production in self.iter_productions()
        )


_ARROW = re.compile(r"\s*(?:→|->)\s*")


def iter_alternatives(definition_str: str) -> Iterator[Production]:
    lexemes = list(iter_symbol_tokens(definition_str))
    for alternative in split_at(lexemes, lambda lexeme: lexeme == ("word", "|")):
        yield Production(read_symbol(kind, lexeme) for kind, lexeme in alternative)


def _parse_grammar(grammar_str: str) -> Grammar:
    """Ad Hoc BNF reader; accepts what format_grammar prints"""
    heads: list[str] = []
    definitions: dict[str, list[Production]] = {}
    current: Optional[str] = None

    for line in grammar_str.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("|"):
            if current is None:
                raise GrammarDefinitionError(f"alternative without a head: {line}")
            definitions[current].extend(iter_alternatives(line[1:]))
            continue
        parts = _ARROW.split(line, maxsplit=1)
        if len(parts) != 2:
            raise GrammarDefinitionError(f"expected 'head → productions', got {line}")
        current, definition_str = parts
        if current not in definitions:
            heads.append(current)
            definitions[current] = []
        if definition_str:
            definitions[current].extend(iter_alternatives(definition_str))

    return Grammar(Nonterminal(head, tuple(definitions[head])) for head in heads)
