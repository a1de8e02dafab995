"""Lexer for the TypeScript subset used by Convex schema and function files."""

import re

import ply.lex as lex
from ply.lex import TOKEN

_STRING = r"""(?:"(?:[^"\\\n]|\\[\s\S])*")|(?:'(?:[^'\\\n]|\\[\s\S])*')"""
_TEMPLATE = r"`(?:[^`\\]|\\[\s\S])*`"
_NUMBER = (
    r"0[xX][0-9a-fA-F_]+n?|0[bB][01_]+n?|0[oO][0-7_]+n?"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?n?"
)
# Longest alternatives first; '-', '*', '<', '>' and '=' have their own tokens
_OPERATOR = (
    r"===|!==|==|!=|&&=|\|\|=|\?\?=|&&|\|\||\?\?|\?\.|\+\+|--"
    r"|[-+/%&|^]=|[+/%&|^!~?@\#]"
)

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\n": "",
    "\r\n": "",
}


def _replace_escape(match: re.Match[str]) -> str:
    seq = match.group(1)
    if seq.startswith("u{"):
        return chr(int(seq[2:-1], 16))
    if seq.startswith("u") and len(seq) == 5:
        return chr(int(seq[1:], 16))
    if seq.startswith("x") and len(seq) == 3:
        return chr(int(seq[1:], 16))
    return _SIMPLE_ESCAPES.get(seq, seq)


def unescape(body: str) -> str:
    """Decode the escape sequences of a string literal body."""
    return _ESCAPE_RE.sub(_replace_escape, body)


class TsLexer:
    """Lexer for tokenizing TypeScript schema and function documents."""

    # Reserved keywords
    reserved = {
        "import": "IMPORT",
        "export": "EXPORT",
        "from": "FROM",
        "default": "DEFAULT",
        "const": "CONST",
        "let": "LET",
        "var": "VAR",
        "function": "FUNCTION",
        "async": "ASYNC",
        "as": "AS",
        "type": "TYPE",
        "interface": "INTERFACE",
        "satisfies": "SATISFIES",
        "true": "TRUE",
        "false": "FALSE",
        "null": "NULL",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "STRING",
        "TEMPLATE",
        "NUMBER",
        "LBRACE",
        "RBRACE",
        "LPAREN",
        "RPAREN",
        "LBRACKET",
        "RBRACKET",
        "COMMA",
        "COLON",
        "SEMI",
        "DOT",
        "ELLIPSIS",
        "EQUALS",
        "ARROW",
        "MINUS",
        "STAR",
        "LT",
        "GT",
        "OPERATOR",
    ] + list(reserved.values())

    # Simple tokens
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_COMMA = r","
    t_COLON = r":"
    t_SEMI = r";"
    t_DOT = r"\."
    t_ELLIPSIS = r"\.\.\."
    t_ARROW = r"=>"
    t_EQUALS = r"="
    t_MINUS = r"-"
    t_STAR = r"\*"
    t_LT = r"<"
    t_GT = r">"

    # Ignored characters (newlines are counted by t_NEWLINE)
    t_ignore = " \t\r\f\v\ufeff"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    # Function rules are tried in definition order, before the string rules
    # above; comments must come before OPERATOR so that '/' is not split off.

    def t_COMMENT(self, t: lex.LexToken) -> None:
        r"//[^\n]*|/\*[\s\S]*?\*/"
        t.lexer.lineno += t.value.count("\n")

    @TOKEN(_TEMPLATE)
    def t_TEMPLATE(self, t: lex.LexToken) -> lex.LexToken:
        t.lexer.lineno += t.value.count("\n")
        t.value = t.value[1:-1]
        return t

    @TOKEN(_STRING)
    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        t.value = unescape(t.value[1:-1])
        return t

    @TOKEN(_NUMBER)
    def t_NUMBER(self, t: lex.LexToken) -> lex.LexToken:
        text = t.value.replace("_", "")
        if text.endswith("n"):
            text = text[:-1]
        if text[:2].lower() in ("0x", "0b", "0o"):
            t.value = int(text, 0)
        elif any(c in text for c in ".eE"):
            t.value = float(text)
        else:
            t.value = int(text)
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[A-Za-z_$][A-Za-z0-9_$]*"
        # Keywords after '.' are property names (ctx.db.type, Array.from)
        if not self._follows_dot(t):
            t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    @TOKEN(_OPERATOR)
    def t_OPERATOR(self, t: lex.LexToken) -> lex.LexToken:
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at line {t.lineno}")

    @staticmethod
    def _follows_dot(t: lex.LexToken) -> bool:
        data = t.lexer.lexdata
        i = t.lexpos - 1
        while i >= 0 and data[i] in " \t\r\n":
            i -= 1
        return i >= 0 and data[i] == "."

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.lineno = 1
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens
