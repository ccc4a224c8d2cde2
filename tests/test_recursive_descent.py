import sys

import pytest

from grammar import Grammar, GrammarDefinitionError, anti_left_recurse
from parsers import (
    Failure,
    NestingTooDeepError,
    ParseError,
    ParseTree,
    RecursiveDescentParser,
    Success,
    TrailingInputError,
    parse_ast,
)
from tokenizer import LexicalError, MatchPolicy, Token, tokenize
from utils.grammars import (
    GRAMMAR_ARITHMETIC,
    GRAMMAR_DIGIT_LIST,
    GRAMMAR_PARENS,
    GRAMMAR_POSTFIX_SCHEME,
    GRAMMAR_PREFIX,
    GRAMMAR_STMT,
    GRAMMAR_ZEROS_ONES,
)


def lexemes(tree: ParseTree) -> list[str]:
    return [token.lexeme for token in tree.leaves()]


def strip_tokens(ast):
    return {
        "id": ast["id"],
        "expansion": [
            child.lexeme if isinstance(child, Token) else strip_tokens(child)
            for child in ast["expansion"]
        ],
    }


@pytest.fixture
def stmt():
    return Grammar.from_pairs(GRAMMAR_STMT)


@pytest.fixture
def digit_list():
    return anti_left_recurse(Grammar.from_pairs(GRAMMAR_DIGIT_LIST))


def test_for_loop(stmt):
    tree = parse_ast(stmt, "for ( ; expr ; expr ) other")
    assert tree.head == "stmt"
    assert tree.production == stmt.start.productions[2]

    optexprs = [
        child
        for child in tree.children
        if isinstance(child, ParseTree) and child.head == "optexpr"
    ]
    assert [child.production.is_epsilon for child in optexprs] == [True, False, False]
    assert optexprs[0].children == ()
    assert lexemes(tree) == ["for", "(", ";", "expr", ";", "expr", ")", "other"]


def test_nested_statements(stmt):
    tree = parse_ast(stmt, "if ( expr ) for ( expr ; ; ) expr ;")
    assert tree.production == stmt.start.productions[1]
    assert len(list(tree.leaves())) == 12


def test_unlexable_trailing_input(stmt):
    with pytest.raises(TrailingInputError) as exc_info:
        parse_ast(stmt, "other garbage")
    error = exc_info.value
    assert isinstance(error, SyntaxError)
    assert error.remaining == "garbage"
    assert error.position == 1
    assert error.loc.offset == 6
    assert isinstance(error.__cause__, LexicalError)


def test_trailing_tokens(stmt):
    with pytest.raises(TrailingInputError) as exc_info:
        parse_ast(stmt, "other other")
    assert exc_info.value.position == 1
    assert exc_info.value.remaining == "other"
    assert exc_info.value.nonterminal == "stmt"


def test_trailing_tokens_before_unlexable_input(stmt):
    with pytest.raises(TrailingInputError) as exc_info:
        parse_ast(stmt, "other other garbage")
    assert exc_info.value.position == 1
    assert exc_info.value.remaining == "other garbage"


def test_syntax_error_reports_the_farthest_failure(stmt):
    with pytest.raises(ParseError) as exc_info:
        parse_ast(stmt, "if ( expr other")
    error = exc_info.value
    assert type(error) is ParseError
    assert error.position == 3
    assert error.expected == frozenset({")"})
    assert error.remaining == "other"
    assert error.loc.col == 10
    assert "expected one of: )" in str(error)


def test_syntax_error_at_end_of_input(stmt):
    with pytest.raises(ParseError) as exc_info:
        parse_ast(stmt, "for ( ; expr ; expr ) if")
    error = exc_info.value
    assert error.position == 8
    assert error.loc is None
    assert error.remaining == ""
    assert error.expected == frozenset({"("})


def test_syntax_error_before_unlexable_input(stmt):
    with pytest.raises(ParseError) as exc_info:
        parse_ast(stmt, "if ) other garbage")
    assert type(exc_info.value) is ParseError
    assert exc_info.value.position == 1
    assert exc_info.value.remaining == ") other garbage"


@pytest.mark.parametrize("code", ["for ( ; expr ; garbage ) other", "$ other"])
def test_lexical_error_is_the_earliest_error(stmt, code):
    with pytest.raises(LexicalError) as exc_info:
        parse_ast(stmt, code)
    assert exc_info.value.loc.offset == code.index(exc_info.value.text[0])


def test_empty_input(stmt):
    with pytest.raises(ParseError) as exc_info:
        parse_ast(stmt, "  ")
    assert exc_info.value.position == 0
    assert exc_info.value.expected == frozenset({"expr", "if", "for", "other"})

    tree = parse_ast(Grammar.from_pairs(GRAMMAR_PARENS), "")
    assert tree.production.is_epsilon
    assert tree.children == ()


def test_digit_list(digit_list):
    tree = parse_ast(digit_list, "9-7+3")
    assert lexemes(tree) == ["9", "-", "7", "+", "3"]
    assert tree.label == "expr → term R"


def test_left_recursive_grammar_is_rejected():
    cfg = Grammar.from_pairs(GRAMMAR_DIGIT_LIST)
    with pytest.raises(GrammarDefinitionError, match="left-recursive"):
        parse_ast(cfg, "9-7+3")
    with pytest.raises(GrammarDefinitionError):
        RecursiveDescentParser(cfg, [])


@pytest.mark.parametrize(
    "grammar,code,expected_tokens",
    [
        (GRAMMAR_PREFIX, "+ - + a a + a a a", 9),
        (GRAMMAR_PREFIX, "a", 1),
        (GRAMMAR_PARENS, "()", 2),
        (GRAMMAR_PARENS, "( ( ) ) ( )", 6),
        (GRAMMAR_ZEROS_ONES, "000 111", 6),
        (GRAMMAR_ZEROS_ONES, "01", 2),
    ],
)
def test_backtracking(grammar, code, expected_tokens):
    tree = parse_ast(Grammar.from_pairs(grammar), code)
    assert len(lexemes(tree)) == expected_tokens


@pytest.mark.parametrize(
    "grammar,code",
    [
        (GRAMMAR_PREFIX, "+ a"),
        (GRAMMAR_PARENS, "(()"),
        (GRAMMAR_ZEROS_ONES, "001"),
    ],
)
def test_backtracking_rejects(grammar, code):
    with pytest.raises(ParseError):
        parse_ast(Grammar.from_pairs(grammar), code)


def test_actions_are_ignored():
    cfg = Grammar.from_pairs(GRAMMAR_POSTFIX_SCHEME)
    tree = parse_ast(cfg, "9-5+2")
    assert lexemes(tree) == ["9", "-", "5", "+", "2"]
    term = tree.children[0]
    assert str(term.production) == "9 {print('9')}"


def test_match_policy_changes_the_tokens():
    cfg = anti_left_recurse(Grammar.from_str(GRAMMAR_ARITHMETIC))
    tree = parse_ast(cfg, "12 * (x + 3)", MatchPolicy.LONGEST)
    assert lexemes(tree) == ["12", "*", "(", "x", "+", "3", ")"]

    with pytest.raises(TrailingInputError) as exc_info:
        parse_ast(cfg, "12 * (x + 3)")
    assert exc_info.value.position == 1
    assert exc_info.value.remaining == "2 * (x + 3)"


def test_collapse(digit_list):
    tree = parse_ast(digit_list, "9-7")
    assert strip_tokens(tree.collapse()) == {
        "id": "expr",
        "expansion": ["9", {"id": "R", "expansion": ["-", "7"]}],
    }


def test_parse_nonterminal(digit_list):
    tokens = tokenize(digit_list, "9-7+3")
    parser = RecursiveDescentParser(digit_list, tokens)
    outcome = parser.parse_nonterminal(0, 0)
    assert isinstance(outcome, Success)
    assert outcome.consumed == len(tokens)

    outcome = parser.parse_nonterminal(digit_list.index_of("term"), 1)
    assert outcome == Failure("term", 1, outcome.expected)
    assert "9" in outcome.expected

    # the tail can match nothing
    outcome = parser.parse_nonterminal(digit_list.index_of("R"), 0)
    assert isinstance(outcome, Success)
    assert outcome.consumed == 0


def test_remaining_text_without_source(stmt):
    tokens = tokenize(stmt, "other   other")
    with pytest.raises(TrailingInputError) as exc_info:
        RecursiveDescentParser(stmt, tokens).parse()
    assert exc_info.value.remaining == "other"


def test_farthest_failure_merges_expected():
    near = Failure("A", 1, frozenset({"x"}))
    far = Failure("B", 3, frozenset({"y"}))
    assert near.farthest(far) is far
    assert far.farthest(near) is far
    assert far.farthest(Failure("C", 3, frozenset({"z"}))) == Failure(
        "B", 3, frozenset({"y", "z"})
    )


@pytest.mark.parametrize("suffix", ["", " $"])
def test_input_nesting_past_the_recursion_limit(digit_list, suffix):
    code = "+".join(["1"] * sys.getrecursionlimit()) + suffix
    with pytest.raises(NestingTooDeepError) as exc_info:
        parse_ast(digit_list, code)
    error = exc_info.value
    assert isinstance(error, SyntaxError)
    assert isinstance(error.__cause__, RecursionError)
    assert error.nonterminal in {"R", "term"}
    assert error.position > 0
    assert "too deeply" in str(error)


def test_long_input_within_the_recursion_limit(digit_list):
    tree = parse_ast(digit_list, "+".join(["1"] * 100))
    assert len(lexemes(tree)) == 199


def test_quoted_brace_terminals():
    cfg = Grammar.from_pairs([("block", ["'{' stmts '}'"]), ("stmts", ["x stmts", "ε"])])
    tree = parse_ast(cfg, "{ x x }")
    assert lexemes(tree) == ["{", "x", "x", "}"]
