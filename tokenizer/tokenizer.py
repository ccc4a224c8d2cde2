from dataclasses import dataclass
from enum import Enum
from typing import Iterator, NamedTuple, Optional, Sequence

from grammar import Grammar, Literal, Terminal


class Loc(NamedTuple):
    filename: str
    line: int
    col: int
    offset: int

    def __str__(self):
        return f"<{self.filename}:{self.line}:{self.col}>"


@dataclass(frozen=True, slots=True)
class Token:
    """
    A token has three components:
    1) The terminal of the grammar it was matched against
    2) A lexeme -- the substring of the source code it represents
    3) The location in code of the lexeme
    """

    terminal: Terminal
    lexeme: str
    loc: Loc

    @property
    def label(self) -> str:
        return self.terminal.label

    def __str__(self):
        if self.lexeme != self.label:
            return f"{{{self.label} {self.lexeme!r}}}"
        return self.label


class LexicalError(ValueError):
    def __init__(self, text: str, loc: Loc, tokens: Sequence[Token] = ()):
        self.text = text
        self.loc = loc
        # the tokens matched before the error
        self.tokens = tuple(tokens)
        super().__init__(f"unrecognized input {text!r} at {loc}")


class MatchPolicy(Enum):
    # commit the first candidate, grown one character at a time, that any
    # terminal accepts; a terminal that is a prefix of another always wins
    EARLIEST = "earliest"
    # maximal munch: every terminal reads as far as it can at the cursor and
    # the longest lexeme wins; ties go to the earlier terminal
    LONGEST = "longest"


class _Scanner:
    """The cursor of a single tokenize call."""

    def __init__(self, code: str, filename: str):
        self._filename = filename
        self._code = code
        self._linenum = 0
        self._column = 0
        self._code_offset = 0

    def at_end(self) -> bool:
        return self._code_offset >= len(self._code)

    def loc(self) -> Loc:
        return Loc(self._filename, self._linenum, self._column, self._code_offset)

    def _to_next_char(self):
        if self._current_char() == "\n":
            self._linenum += 1
            self._column = 0
        else:
            self._column += 1
        self._code_offset += 1

    def _skip_n_chars(self, n):
        for _ in range(n):
            self._to_next_char()

    def _current_char(self):
        return self._code[self._code_offset]

    def _remaining_code(self):
        return self._code[self._code_offset :]

    def skip_whitespace(self):
        while not self.at_end() and self._current_char().isspace():
            self._to_next_char()

    @property
    def code(self) -> str:
        return self._code

    @property
    def offset(self) -> int:
        return self._code_offset

    def consume(self, lexeme: str):
        self._skip_n_chars(len(lexeme))

    def remaining_text(self) -> str:
        return self._remaining_code().rstrip()


class Tokenizer:
    """Turns text into tokens labelled by the terminals of a grammar.

    Whitespace separates tokens and is never emitted.
    """

    def __init__(
        self,
        terminals: Sequence[Terminal],
        policy: MatchPolicy = MatchPolicy.EARLIEST,
        filename: str = "(void)",
    ):
        self.terminals = tuple(terminals)
        self.policy = policy
        self.filename = filename
        # no literal candidate is longer than this; patterns are unbounded
        self._max_literal = max(
            (len(t.name) for t in self.terminals if isinstance(t, Literal)), default=0
        )
        self._has_patterns = any(not isinstance(t, Literal) for t in self.terminals)

    @staticmethod
    def from_grammar(
        grammar: Grammar,
        policy: MatchPolicy = MatchPolicy.EARLIEST,
        filename: str = "(void)",
    ) -> "Tokenizer":
        return Tokenizer(grammar.terminals, policy, filename)

    def _earliest(self, code: str, start: int) -> Optional[tuple[Terminal, str]]:
        stop = len(code)
        if not self._has_patterns:
            stop = min(stop, start + self._max_literal)
        for end in range(start + 1, stop + 1):
            for terminal in self.terminals:
                if terminal.accepts_span(code, start, end):
                    return terminal, code[start:end]
        return None

    def _longest(self, code: str, start: int) -> Optional[tuple[Terminal, str]]:
        best: Optional[Terminal] = None
        best_length = 0
        for terminal in self.terminals:
            length = terminal.match_length(code, start)
            if length > best_length:
                best, best_length = terminal, length
        if best is None:
            return None
        return best, code[start : start + best_length]

    def _match(self, scanner: _Scanner) -> Optional[tuple[Terminal, str]]:
        if self.policy is MatchPolicy.EARLIEST:
            return self._earliest(scanner.code, scanner.offset)
        return self._longest(scanner.code, scanner.offset)

    def get_tokens(self, code: str) -> Iterator[Token]:
        """
        :return: an iterator over the tokens
        :raises LexicalError: when the remaining code matches no terminal
        """
        scanner = _Scanner(code, self.filename)
        tokens: list[Token] = []
        scanner.skip_whitespace()
        while not scanner.at_end():
            token_location = scanner.loc()
            if (match := self._match(scanner)) is None:
                raise LexicalError(scanner.remaining_text(), token_location, tokens)
            terminal, lexeme = match
            token = Token(terminal, lexeme, token_location)
            tokens.append(token)
            yield token
            scanner.consume(lexeme)
            scanner.skip_whitespace()

    def tokenize(self, code: str) -> list[Token]:
        return list(self.get_tokens(code))


def tokenize(
    grammar: Grammar, code: str, policy: MatchPolicy = MatchPolicy.EARLIEST
) -> list[Token]:
    return Tokenizer.from_grammar(grammar, policy).tokenize(code)
