"""
Quote-aware shell tokenizer.

The whole command is tokenized in one pass BEFORE it is split into
sub-commands, so an operator inside quotes is literal text and can never act
as a command separator. Splitting first and tokenizing the pieces would let
`cat "a | b"` parse as two commands.
"""

from __future__ import annotations

# A lone `&` (background) and an unquoted newline also start a new command
OPERATORS = frozenset({"|", "||", "&&", ";", "&", "\n"})
REDIRECTS = frozenset({"<", ">", ">>"})


class Operator(str):
    """A control or redirection operator that appeared outside quotes.

    Compares equal to its plain text, but a quoted `'|'` is an ordinary str
    and is never mistaken for a separator.
    """

    __slots__ = ()

    @property
    def is_separator(self) -> bool:
        return self in OPERATORS

    @property
    def is_redirect(self) -> bool:
        return self in REDIRECTS


def is_separator(token: str) -> bool:
    return isinstance(token, Operator) and token.is_separator


def is_redirect(token: str, *kinds: str) -> bool:
    """True if token is an unquoted redirection (optionally one of kinds)."""
    if not (isinstance(token, Operator) and token.is_redirect):
        return False
    return not kinds or token in kinds


def tokenize(command: str) -> list[str]:
    """Split a shell command into words and operator tokens.

    Quotes are consumed and toggle literal mode; a backslash outside single
    quotes escapes the next character. Outside quotes `|`, `||`, `&&`, `;`, `&`,
    newline, `<`, `>` and `>>` become Operator tokens of their own; any other
    whitespace ends the current word.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_single = False
    in_double = False
    escaped = False

    def flush() -> None:
        if current:
            tokens.append("".join(current))
            current.clear()

    def emit(op: str) -> None:
        flush()
        tokens.append(Operator(op))

    i = 0
    n = len(command)
    while i < n:
        ch = command[i]
        nxt = command[i + 1] if i + 1 < n else ""
        i += 1

        if escaped:
            # Backslash-newline is a line continuation, not a character
            if ch != "\n":
                current.append(ch)
            escaped = False
            continue
        if ch == "\\" and not in_single:
            escaped = True
            continue
        if ch == "'" and not in_double:
            in_single = not in_single
            continue
        if ch == '"' and not in_single:
            in_double = not in_double
            continue

        if in_single or in_double:
            current.append(ch)
            continue

        if ch == "\n":
            emit("\n")
            continue
        if ch.isspace():
            flush()
            continue

        if ch == "|":
            if nxt == "|":
                emit("||")
                i += 1
            else:
                emit("|")
            continue
        if ch == "&":
            if nxt == "&":
                emit("&&")
                i += 1
            elif not current and tokens and is_redirect(tokens[-1]):
                # `2>&1`: the `&` belongs to the redirect target
                current.append(ch)
            else:
                emit("&")
            continue
        if ch == ";":
            emit(";")
            continue
        if ch == ">":
            if nxt == ">":
                emit(">>")
                i += 1
            else:
                emit(">")
            continue
        if ch == "<":
            emit("<")
            continue

        current.append(ch)

    flush()
    return tokens


def split_on_operators(tokens: list[str]) -> list[list[str]]:
    """Group tokens into sub-commands at unquoted |, ||, &&, ;, & and newline.

    Redirection tokens stay in their group.
    """
    groups: list[list[str]] = [[]]
    for token in tokens:
        if is_separator(token):
            groups.append([])
        else:
            groups[-1].append(token)
    return groups
