# this module eliminates immediate left recursion in a grammar.
# Indirect left recursion (A → B x, B → A y) is neither detected nor removed.
from itertools import count
from typing import Iterator

from more_itertools import partition
from typeguard import typechecked

from .cfg import Grammar
from .core import (
    EPSILON,
    GrammarDefinitionError,
    Nonterminal,
    Production,
    Word,
)

DEFAULT_TAIL_NAME = "R"


class UngroundableNonterminalError(GrammarDefinitionError):
    def __init__(self, nonterminal: Nonterminal):
        self.nonterminal = nonterminal
        super().__init__(
            f"every production of {nonterminal.head} is left-recursive; "
            f"{nonterminal!s} can never ground out"
        )


def starts_with_head(nonterminal: Nonterminal, production: Production) -> bool:
    return production.head_symbol() == Word(nonterminal.head)


def is_left_recursive(nonterminal: Nonterminal) -> bool:
    """Purely syntactic: some production's first symbol is the head itself."""
    return any(
        starts_with_head(nonterminal, production)
        for production in nonterminal.productions
    )


@typechecked
def anti_left_recurse_nonterminal(
    nonterminal: Nonterminal, tail_name: str = DEFAULT_TAIL_NAME
) -> tuple[Nonterminal, ...]:
    """Eliminate immediate left recursion by rewriting

        A → A α | A β | γ | δ

    as the pair

        A → γ R | δ R
        R → α R | β R | ε

    :param nonterminal: the nonterminal to rewrite
    :param tail_name: the head of the introduced nonterminal R
    :return: ``(nonterminal,)`` when there is nothing to rewrite, else ``(A, R)``
    """
    if not nonterminal.productions:
        raise GrammarDefinitionError(
            f"Nonterminal {nonterminal.head} with no productions"
        )

    grounded, recursive = partition(
        lambda production: starts_with_head(nonterminal, production),
        nonterminal.productions,
    )
    grounded, recursive = list(grounded), list(recursive)

    if not recursive:
        return (nonterminal,)
    if not grounded:
        raise UngroundableNonterminalError(nonterminal)

    tail = Word(tail_name)
    tails = []
    for production in recursive:
        alpha = production.without_head()
        if not alpha.symbols:
            raise GrammarDefinitionError(
                f"Cannot anti recurse {nonterminal.head} → {production!s}, too few symbols"
            )
        tails.append(alpha.append(tail))

    statics = [
        Production(item for item in production if item is not EPSILON).append(tail)
        for production in grounded
    ]
    return (
        Nonterminal(nonterminal.head, tuple(statics)),
        Nonterminal(tail_name, tuple(tails) + (Production.epsilon(),)),
    )


def _used_names(grammar: Grammar) -> set[str]:
    names = set(grammar.heads)
    for _, production in grammar.iter_productions():
        names.update(symbol.name for symbol in production.symbols)
    return names


def fresh_tail_names(taken: set[str]) -> Iterator[str]:
    for suffix in count(0):
        name = f"{DEFAULT_TAIL_NAME}{suffix or ''}"
        if name not in taken:
            yield name


def anti_left_recurse(grammar: Grammar) -> Grammar:
    """Replace every nonterminal, in order, by the one or two nonterminals its
    own rewrite yields.

    Each introduced tail gets a name that does not clash with any head or
    symbol of the grammar: R, then R1, R2, ...
    """
    taken = _used_names(grammar)
    names = fresh_tail_names(taken)
    rewritten: list[Nonterminal] = []
    for nonterminal in grammar:
        if not is_left_recursive(nonterminal):
            rewritten.append(nonterminal)
            continue
        tail_name = next(names)
        taken.add(tail_name)
        rewritten.extend(anti_left_recurse_nonterminal(nonterminal, tail_name))
    return Grammar(rewritten)
