from io import StringIO
from typing import Iterable

from prettytable import PrettyTable
from rich.console import Console
from rich.markup import escape
from rich.text import Text
from rich.tree import Tree

from grammar import Grammar, Production, Symbol
from parsers.parser import ParseTree
from tokenizer import Token

NONTERMINAL_STYLE = "bold blue"


def format_symbol(grammar: Grammar, symbol: Symbol, markup: bool = False) -> str:
    if not markup:
        return str(symbol)
    if grammar.is_nonterminal(symbol):
        return f"[{NONTERMINAL_STYLE}]{escape(str(symbol))}[/{NONTERMINAL_STYLE}]"
    return escape(str(symbol))


def format_production(
    grammar: Grammar, production: Production, markup: bool = False
) -> str:
    return " ".join(format_symbol(grammar, item, markup) for item in production)


def format_grammar(grammar: Grammar, markup: bool = False) -> str:
    """Render the grammar as aligned BNF:

        expr → term R

        R    → + term R
             | - term R
             | ε

    With ``markup`` set, nonterminal references are wrapped in rich markup so
    that ``rich.print`` tells them apart from terminals.
    """
    padlen = max(len(nonterminal.head) for nonterminal in grammar)
    blocks = []
    for nonterminal in grammar:
        head = escape(nonterminal.head) if markup else nonterminal.head
        first, *rest = nonterminal.productions
        lines = [
            f"{head}{' ' * (padlen - len(nonterminal.head))} → "
            f"{format_production(grammar, first, markup)}"
        ]
        lines.extend(
            f"{'':{padlen}} | {format_production(grammar, production, markup)}"
            for production in rest
        )
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _token_text(token: Token) -> str:
    if token.lexeme != token.label:
        return f"{token.label} {token.lexeme!r}"
    return token.label


def build_tree(tree: ParseTree, root: Tree | None = None) -> Tree:
    if root is None:
        root = Tree(Text(tree.label))
    for child in tree.children:
        if isinstance(child, Token):
            root.add(Text(_token_text(child)))
        else:
            build_tree(child, root.add(Text(child.label)))
    return root


def format_tree(tree: ParseTree) -> str:
    """Render a parse tree as indented text, one node per line."""
    console = Console(file=StringIO(), width=10_000, color_system=None)
    console.print(build_tree(tree))
    rendered = console.file.getvalue()
    return "\n".join(line.rstrip() for line in rendered.rstrip().splitlines())


def tokens_table(tokens: Iterable[Token]) -> PrettyTable:
    table = PrettyTable()
    table.field_names = ["#", "terminal", "lexeme", "location"]
    for index, token in enumerate(tokens):
        table.add_row([index, token.label, token.lexeme, str(token.loc)])
    return table
