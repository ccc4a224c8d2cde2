from .parser import (
    AST,
    Failure,
    NestingTooDeepError,
    Outcome,
    ParseError,
    ParseTree,
    RecursiveDescentParser,
    Success,
    TrailingInputError,
    check_left_recursion,
    parse_ast,
)
