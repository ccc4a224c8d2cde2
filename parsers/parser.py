from dataclasses import dataclass
from typing import Iterator, NamedTuple, NoReturn, Optional, Required, Sequence, TypedDict, Union

from grammar import (
    Grammar,
    GrammarDefinitionError,
    NonterminalRef,
    Production,
    ResolvedProduction,
    TerminalRef,
    is_left_recursive,
)
from tokenizer import LexicalError, Loc, MatchPolicy, Token, Tokenizer


class AST(TypedDict):
    id: Required[str]
    expansion: Required[list[Union["AST", Token]]]


class ParseTree(NamedTuple):
    head: str
    production: Production
    children: tuple[Union["ParseTree", Token], ...]

    @property
    def label(self) -> str:
        return f"{self.head} → {self.production!s}"

    def leaves(self) -> Iterator[Token]:
        for child in self.children:
            if isinstance(child, Token):
                yield child
            else:
                yield from child.leaves()

    def collapse(self) -> AST:
        """Drop epsilon matches and inline nonterminals with a single child"""
        expansion: list[AST | Token] = []
        for child in self.children:
            if isinstance(child, Token):
                expansion.append(child)
            else:
                child_collapse = child.collapse()
                if len(child_collapse["expansion"]) == 1:
                    expansion.extend(child_collapse["expansion"])
                elif child_collapse["expansion"]:
                    expansion.append(child_collapse)
        return {"id": self.head, "expansion": expansion}

    def __str__(self):
        from utils.pretty import format_tree

        return format_tree(self)


@dataclass(frozen=True, slots=True)
class Success:
    tree: ParseTree
    consumed: int


@dataclass(frozen=True, slots=True)
class Failure:
    nonterminal: str
    position: int
    expected: frozenset[str] = frozenset()

    def farthest(self, other: "Failure") -> "Failure":
        """Keep the failure that got deepest into the input."""
        if other.position > self.position:
            return other
        if other.position < self.position:
            return self
        return Failure(self.nonterminal, self.position, self.expected | other.expected)


Outcome = Success | Failure


class ParseError(SyntaxError):
    def __init__(
        self,
        nonterminal: str,
        position: int,
        loc: Optional[Loc],
        remaining: str,
        expected: frozenset[str] = frozenset(),
        message: Optional[str] = None,
    ):
        self.nonterminal = nonterminal
        self.position = position
        self.loc = loc
        self.remaining = remaining
        self.expected = expected
        if message is None:
            message = (
                f"Syntax error in {remaining!r} using {nonterminal}"
                f" at token {position}" + (f" {loc}" if loc is not None else "")
            )
            if expected:
                message += f"; expected one of: {', '.join(sorted(expected))}"
        super().__init__(message)


class TrailingInputError(ParseError):
    def __init__(self, nonterminal: str, position: int, loc: Optional[Loc], remaining: str):
        super().__init__(
            nonterminal,
            position,
            loc,
            remaining,
            message=f"Unable to parse {remaining!r} at token {position}"
            + (f" {loc}" if loc is not None else ""),
        )


class NestingTooDeepError(ParseError):
    def __init__(self, nonterminal: str, position: int, loc: Optional[Loc], remaining: str):
        super().__init__(
            nonterminal,
            position,
            loc,
            remaining,
            message=f"Input nests too deeply to parse; gave up in {nonterminal}"
            f" at token {position}" + (f" {loc}" if loc is not None else ""),
        )


def check_left_recursion(grammar: Grammar) -> None:
    for nonterminal in grammar:
        if is_left_recursive(nonterminal):
            raise GrammarDefinitionError(
                f"{nonterminal.head} is left-recursive; "
                f"eliminate it with anti_left_recurse before parsing"
            )


class RecursiveDescentParser:
    """Top-down parser that tries the productions of a nonterminal in order.

    The first production that matches wins. A failed production is abandoned
    as a whole and the next one restarts from the same token; nothing is
    memoized between alternatives. Epsilon productions are only used once
    every other production has failed.
    """

    def __init__(self, grammar: Grammar, tokens: Sequence[Token], source: Optional[str] = None):
        check_left_recursion(grammar)
        self.grammar = grammar
        self.tokens = tuple(tokens)
        self.source = source
        # the last nonterminal entered at the farthest token, for NestingTooDeepError
        self._frontier = (0, grammar.start.head)

    def parse_nonterminal(self, index: int, position: int) -> Outcome:
        head = self.grammar[index].head
        if position >= self._frontier[0]:
            self._frontier = (position, head)
        failure = Failure(head, position)
        epsilon: Optional[ResolvedProduction] = None

        for production in self.grammar.resolved[index]:
            if production.is_epsilon:
                epsilon = epsilon or production
                continue
            match self.parse_production(head, production, position):
                case Success() as success:
                    return success
                case Failure() as failed:
                    failure = failure.farthest(failed)

        if epsilon is not None:
            return Success(ParseTree(head, epsilon.production, ()), 0)
        return failure

    def parse_production(
        self, head: str, production: ResolvedProduction, position: int
    ) -> Outcome:
        children: list[ParseTree | Token] = []
        start = position
        for symbol in production.symbols:
            match symbol:
                case TerminalRef(terminal):
                    if position < len(self.tokens) and terminal.accepts(
                        self.tokens[position].lexeme
                    ):
                        children.append(self.tokens[position])
                        position += 1
                    else:
                        return Failure(head, position, frozenset({terminal.label}))
                case NonterminalRef(_, index):
                    match self.parse_nonterminal(index, position):
                        case Success(tree, consumed):
                            children.append(tree)
                            position += consumed
                        case Failure() as failure:
                            return failure
        return Success(
            ParseTree(head, production.production, tuple(children)), position - start
        )

    def parse_start(self) -> Outcome:
        """Parse the start symbol from the first token.

        Every production is a Python call, so deeply nested or long inputs can
        exhaust the interpreter's recursion limit; that surfaces as a
        NestingTooDeepError rather than a RecursionError.
        """
        self._frontier = (0, self.grammar.start.head)
        try:
            return self.parse_nonterminal(0, 0)
        except RecursionError as e:
            position, head = self._frontier
            raise NestingTooDeepError(
                head, position, self._loc(position), self.remaining_text(position)
            ) from e

    def parse(self) -> ParseTree:
        """Parse the start symbol, requiring every token to be consumed."""
        match self.parse_start():
            case Failure() as failure:
                raise self.syntax_error(failure)
            case Success(tree, consumed):
                if consumed < len(self.tokens):
                    raise self.trailing_error(consumed)
                return tree

    def _loc(self, position: int) -> Optional[Loc]:
        if position < len(self.tokens):
            return self.tokens[position].loc
        return None

    def remaining_text(self, position: int) -> str:
        if position >= len(self.tokens):
            return ""
        if self.source is not None:
            return self.source[self.tokens[position].loc.offset :].strip()
        return " ".join(token.lexeme for token in self.tokens[position:])

    def syntax_error(self, failure: Failure) -> ParseError:
        return ParseError(
            failure.nonterminal,
            failure.position,
            self._loc(failure.position),
            self.remaining_text(failure.position),
            failure.expected,
        )

    def trailing_error(self, consumed: int) -> TrailingInputError:
        return TrailingInputError(
            self.grammar.start.head,
            consumed,
            self._loc(consumed),
            self.remaining_text(consumed),
        )


def _report_partial_input(
    grammar: Grammar, code: str, lexical_error: LexicalError
) -> NoReturn:
    # parse what could be tokenized and report the earliest error in the input
    tokens = lexical_error.tokens
    parser = RecursiveDescentParser(grammar, tokens, code)
    match parser.parse_start():
        case Success(_, consumed) if consumed == len(tokens):
            raise TrailingInputError(
                grammar.start.head, consumed, lexical_error.loc, lexical_error.text
            ) from lexical_error
        case Success(_, consumed):
            raise parser.trailing_error(consumed) from lexical_error
        case Failure() as failure if failure.position < len(tokens):
            raise parser.syntax_error(failure) from lexical_error
    raise lexical_error


def parse_ast(
    grammar: Grammar,
    code: str,
    policy: MatchPolicy = MatchPolicy.EARLIEST,
    filename: str = "(void)",
) -> ParseTree:
    """Tokenize ``code`` with the grammar's terminals and parse all of it.

    :raises GrammarDefinitionError: if the grammar is left-recursive
    :raises LexicalError: if the input contains text no terminal accepts
    :raises ParseError: if the tokens do not derive from the start symbol
    :raises TrailingInputError: if input is left over after the start symbol
    :raises NestingTooDeepError: if the input nests deeper than the recursion limit
    """
    check_left_recursion(grammar)
    tokenizer = Tokenizer.from_grammar(grammar, policy, filename)
    try:
        tokens = tokenizer.tokenize(code)
    except LexicalError as lexical_error:
        _report_partial_input(grammar, code, lexical_error)
    return RecursiveDescentParser(grammar, tokens, code).parse()


if __name__ == "__main__":
    from rich import print as print_rich
    from rich.pretty import pretty_repr
    from rich.traceback import install

    from grammar import anti_left_recurse
    from utils.grammars import GRAMMAR_DIGIT_LIST, GRAMMAR_STMT
    from utils.pretty import format_grammar, tokens_table

    install(show_locals=False)

    cfg = Grammar.from_pairs(GRAMMAR_STMT)
    print_rich(format_grammar(cfg, markup=True))
    print(parse_ast(cfg, "for ( ; expr ; expr ) other"))

    cfg = anti_left_recurse(Grammar.from_pairs(GRAMMAR_DIGIT_LIST))
    print_rich(format_grammar(cfg, markup=True))
    print(tokens_table(Tokenizer.from_grammar(cfg).tokenize("9-7+3")))
    print_rich(pretty_repr(parse_ast(cfg, "9-7+3").collapse()))
