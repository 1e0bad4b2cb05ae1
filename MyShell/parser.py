from collections import namedtuple
from dataclasses import dataclass, field
from typing import List, Optional

from MyShell.logger import get_logger

log = get_logger(__name__)

QUOTES = ('"', "'")

STATEMENT_SEPARATOR = ";"
PIPE = "|"

# Only meaningful when present: no redirect means inherit the shell's stdout
OutputRedirect = namedtuple("OutputRedirect", ["path", "append"])


@dataclass
class Command:
    """One program invocation with its redirections."""
    args: List[str] = field(default_factory=list)
    input_redirect: Optional[str] = None
    output_redirect: Optional[OutputRedirect] = None
    background: bool = False


@dataclass
class Pipeline:
    """Commands chained stdout -> stdin, left to right."""
    commands: List[Command] = field(default_factory=list)

    @property
    def background(self):
        return bool(self.commands) and self.commands[-1].background

    def __len__(self):
        return len(self.commands)

    def __str__(self):
        return " | ".join(" ".join(cmd.args) for cmd in self.commands)


def tokenize(text):
    """
    Split text on spaces, quote-aware.
    A quote character (either kind) flips the in-quotes flag and is dropped;
    quotes are not paired by type, so "abc' is a closed region.
    Returns: list of non-empty tokens
    """
    tokens, token = [], []
    in_quotes = False

    for char in text:
        if char in QUOTES:
            in_quotes = not in_quotes
        elif char == " " and not in_quotes:
            if token:
                tokens.append("".join(token))
                token = []
        else:
            token.append(char)

    if token:
        tokens.append("".join(token))
    return tokens


def split_quoted(text, separator):
    """
    Split text on separator, ignoring separators inside quotes.
    Quote characters are kept so the tokenizer still sees them.
    Returns: list of segments, blank ones dropped
    """
    parts, part = [], []
    in_quotes = False

    for char in text:
        if char in QUOTES:
            in_quotes = not in_quotes
            part.append(char)
        elif char == separator and not in_quotes:
            parts.append("".join(part))
            part = []
        else:
            part.append(char)
    parts.append("".join(part))

    return [p for p in parts if p.strip()]


def split_statements(line):
    return split_quoted(line, STATEMENT_SEPARATOR)


def parse_command(segment):
    """
    Parse one pipeline segment into a Command.
    <, > and >> take the next token as their operand; a dangling operator
    is dropped. & can appear anywhere and is never an argument.
    """
    tokens = tokenize(segment)
    cmd = Command()
    i = 0

    while i < len(tokens):
        tok = tokens[i]
        if tok in ("<", ">", ">>"):
            if i + 1 < len(tokens):
                operand = tokens[i + 1]
                if tok == "<":
                    cmd.input_redirect = operand
                else:
                    cmd.output_redirect = OutputRedirect(operand, tok == ">>")
            i += 2
        elif tok == "&":
            cmd.background = True
            i += 1
        else:
            cmd.args.append(tok)
            i += 1

    return cmd


def parse_pipeline(statement):
    """
    Parse one statement into a Pipeline.
    Segments without arguments are skipped, but a trailing one still
    decides whether the pipeline runs in background (`sleep 3 | &`).
    """
    commands = []
    last = None
    for segment in split_quoted(statement, PIPE):
        last = parse_command(segment)
        if last.args:
            commands.append(last)
    if commands and last.background:
        commands[-1].background = True
    return Pipeline(commands)


def parse_line(line):
    """
    Parse a full input line.
    Returns: list of non-empty Pipelines in execution order
    """
    pipelines = []
    for statement in split_statements(line):
        pipeline = parse_pipeline(statement)
        if pipeline.commands:
            pipelines.append(pipeline)
    log.debug("parsed %r into %d statement(s)", line, len(pipelines))
    return pipelines
