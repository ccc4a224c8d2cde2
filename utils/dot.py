import shutil
import subprocess
from itertools import count
from pathlib import Path
from typing import Iterator

from parsers.parser import ParseTree
from tokenizer import Token

GRAPH_TYPE = "pdf"


def yield_edges(
    root: ParseTree,
) -> Iterator[tuple[ParseTree, ParseTree | Token]]:
    for child in root.children:
        yield root, child
        if isinstance(child, ParseTree):
            yield from yield_edges(child)


def graph_prologue() -> str:
    return "\n".join(
        [
            "digraph G {",
            '  graph [fontname="Courier New", ordering=out];',
            '  node [fontname="Courier", style=rounded];',
            '  edge [fontname="Courier"];',
        ]
    )


def graph_epilogue() -> str:
    return "}"


# record labels treat these as field syntax
_DOT_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        "\t": "\\t",
        "\r": "\\r",
        "\n": "\\l",
        '"': '\\"',
        "'": "\\'",
        **{char: "\\" + char for char in "<>|[]{}"},
    }
)


def escape(s: str) -> str:
    return s.translate(_DOT_ESCAPES)


def _node_line(node_id: int, node: ParseTree | Token) -> str:
    if isinstance(node, Token):
        return (
            f"   n{node_id} [shape=doublecircle, style=filled, fillcolor=white, "
            f'fontcolor=black, label="{escape(node.lexeme)}"];'
        )
    return (
        f"   n{node_id} [shape=record, style=filled, fillcolor=black, "
        f'fontcolor=white, label="{escape(node.label)}"];'
    )


def tree_to_dot(root: ParseTree) -> str:
    """Graphviz source for a parse tree; tokens are drawn as circles."""
    # tokens and subtrees are values, so equal nodes may appear twice
    ids: dict[int, int] = {}
    counter = count()

    def node_id(node: ParseTree | Token) -> int:
        if id(node) not in ids:
            ids[id(node)] = next(counter)
        return ids[id(node)]

    nodes = [_node_line(node_id(root), root)]
    edges = []
    for src, dst in yield_edges(root):
        nodes.append(_node_line(node_id(dst), dst))
        edges.append(f"    n{node_id(src)} -> n{node_id(dst)} [arrowhead=vee];")

    return "\n".join([graph_prologue(), *edges, *nodes, graph_epilogue()])


def draw_tree(
    root: ParseTree,
    output_filename: str = "tree.pdf",
    output_filetype: str = GRAPH_TYPE,
) -> Path:
    """Render the tree with the `dot` executable; it must be on the PATH."""
    dot_exec_filepath = shutil.which("dot")
    if dot_exec_filepath is None:
        raise FileNotFoundError("graphviz `dot` executable not found")

    output_filepath = Path(output_filename)
    args = [
        dot_exec_filepath,
        f"-T{output_filetype}",
        f"-Gdpi={96}",
        "-o",
        str(output_filepath),
    ]
    subprocess.run(args, input=tree_to_dot(root), text=True, check=True)
    return output_filepath
