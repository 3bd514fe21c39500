"""Tokenization and classification of spark-submit style argument strings."""

from __future__ import annotations

import logging
import re
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from sparkdispatch.domain import BOOLEAN_FLAGS, JavaOptionsTarget, find_flag
from sparkdispatch.exceptions import TokenizeError
from sparkdispatch.utils import WithLogging

logger = logging.getLogger(__name__)

BACKSLASH_NEWLINE = re.compile(r"\\\r?\n")
QUOTES = {"'": "SINGLE_QUOTED", '"': "DOUBLE_QUOTED"}


@dataclass(frozen=True)
class Token:
    """Atomic unit of a raw argument string."""

    text: str
    quoted: bool = False

    @property
    def is_long_flag(self) -> bool:
        """Whether the token looks like a --flag."""
        return self.text.startswith("--")

    @property
    def is_short_option(self) -> bool:
        """Whether the token looks like a single dash sub-option, e.g. -Dkey=value."""
        return self.text.startswith("-") and not self.is_long_flag


class LexerState(Enum):
    """States of the character level lexer."""

    WHITESPACE = "whitespace"
    WORD = "word"
    SINGLE_QUOTED = "single_quoted"
    DOUBLE_QUOTED = "double_quoted"


def tokenize(raw_args: str, strict: bool = False) -> list[Token]:
    """Split a raw argument string into tokens, honouring single and double quotes.

    Quote characters are stripped and may start in the middle of a token
    (e.g. --conf='a b'). Runs of unquoted whitespace count as one separator.

    Args:
        raw_args: the argument string as typed by the user
        strict: raise TokenizeError on empty input or unterminated quotes,
                instead of returning what could be parsed

    Raises:
        TokenizeError: only when strict is set
    """
    if not raw_args or not raw_args.strip():
        if strict:
            raise TokenizeError("no arguments provided")
        return []

    text = BACKSLASH_NEWLINE.sub(" ", raw_args)

    tokens: list[Token] = []
    buffer: list[str] = []
    quoted = False
    quote_start = -1
    state = LexerState.WHITESPACE

    for position, char in enumerate(text):
        if state in (LexerState.WHITESPACE, LexerState.WORD):
            if char.isspace():
                if state is LexerState.WORD:
                    tokens.append(Token("".join(buffer), quoted))
                    buffer, quoted = [], False
                state = LexerState.WHITESPACE
            elif char in QUOTES:
                state = LexerState[QUOTES[char]]
                quoted, quote_start = True, position
            else:
                buffer.append(char)
                state = LexerState.WORD
        elif (state is LexerState.SINGLE_QUOTED and char == "'") or (
            state is LexerState.DOUBLE_QUOTED and char == '"'
        ):
            state = LexerState.WORD
        else:
            buffer.append(char)

    if state in (LexerState.SINGLE_QUOTED, LexerState.DOUBLE_QUOTED):
        if strict:
            raise TokenizeError(f"unterminated quote at position {quote_start}", raw_args)
        logger.warning(
            f"Unterminated quote at position {quote_start}, closing it at the end of the input"
        )

    if state is not LexerState.WHITESPACE:
        tokens.append(Token("".join(buffer), quoted))

    return tokens


def mask_password(arg: str) -> str:
    """Hide the value of a --flag=value or --conf=key=value token carrying a password."""
    name, sep, value = arg.partition("=")
    if name == "--conf":
        key, sep, _ = value.partition("=")
        name = f"{name}={key}"
    if sep and "password" in name.lower():
        return f"{name}=*****"
    return arg


def split_java_options(options: str) -> list[str]:
    """Split a java options string into whole options.

    Whitespace inside single or double quotes does not split an option; quote
    characters and the spacing between them are kept as they are.
    """
    parts: list[str] = []
    buffer: list[str] = []
    quote = None

    for char in options:
        if quote is None and char.isspace():
            if buffer:
                parts.append("".join(buffer))
                buffer = []
            continue
        if quote is None and char in QUOTES:
            quote = char
        elif char == quote:
            quote = None
        buffer.append(char)

    if buffer:
        parts.append("".join(buffer))
    return parts


def quote_arg(arg: str) -> str:
    """Shell-quote an argument, always quoting single dash options.

    Quoted single dash options are not folded into java options when tokenized again.
    """
    quoted = shlex.quote(arg)
    if quoted == arg and Token(arg).is_short_option:
        return f"'{arg}'"
    return quoted


def render_args(args: Iterable[str]) -> str:
    """Render a list of arguments back to a string that tokenizes to the same list."""
    return " ".join(quote_arg(arg) for arg in args)


class ClassifierState(Enum):
    """Position of the classifier relative to the application resource."""

    PRE_RESOURCE = "pre-resource"
    IN_RESOURCE = "in-resource"
    POST_RESOURCE = "post-resource"


class SubmitArgsClassifier(WithLogging):
    """Split tokens into canonical submit tokens and application arguments.

    Submit tokens are either --flag=value or standalone boolean flags. The
    first bare token is the application resource; it closes the submit tokens
    and everything after it is handed to the application untouched.
    """

    def __init__(self, boolean_flags: Iterable[str] = BOOLEAN_FLAGS):
        self.boolean_flags = frozenset(flag.lstrip("-") for flag in boolean_flags)

    @staticmethod
    def java_options_target(name: str, value: str) -> tuple[JavaOptionsTarget, str] | None:
        """Return the target and the options when a flag carries extra java options."""
        if name == "conf":
            key, sep, options = value.partition("=")
            for target in JavaOptionsTarget:
                if sep and key.strip() == target.property:
                    return target, options
            return None

        flag = find_flag(name)
        if flag is not None:
            for target in JavaOptionsTarget:
                if flag.spark_property == target.property:
                    return target, value
        return None

    def classify(self, tokens: list[Token]) -> tuple[list[str], list[str]]:
        """Classify tokens, returning the submit tokens and the application arguments."""
        state = ClassifierState.PRE_RESOURCE
        submit_args: list[str | None] = []
        app_args: list[str] = []
        java_options: dict[JavaOptionsTarget, tuple[int, list[str]]] = {}

        index = 0
        while index < len(tokens):
            token = tokens[index]

            if state is ClassifierState.POST_RESOURCE:
                app_args.append(token.text)
                index += 1
                continue

            if state is ClassifierState.IN_RESOURCE:
                state = ClassifierState.POST_RESOURCE
                continue

            if not token.text.startswith("-"):
                submit_args.append(token.text)
                state = ClassifierState.IN_RESOURCE
                index += 1
                continue

            if token.is_short_option:
                submit_args.append(token.text)
                index += 1
                continue

            name, sep, value = token.text[2:].partition("=")

            if not sep and name in self.boolean_flags:
                submit_args.append(token.text)
                index += 1
                continue

            if not sep:
                if index + 1 >= len(tokens):
                    # dangling flag, left for the property parser to report
                    submit_args.append(token.text)
                    index += 1
                    continue
                value = tokens[index + 1].text
                index += 2
            else:
                index += 1

            java = self.java_options_target(name, value)
            if java is None:
                submit_args.append(f"--{name}={value}")
                continue

            target, options = java
            collected = split_java_options(options)
            # only bare sub-options are folded, quoted ones stand on their own
            while (
                index < len(tokens)
                and tokens[index].is_short_option
                and not tokens[index].quoted
            ):
                collected.append(tokens[index].text)
                index += 1

            if target not in java_options:
                java_options[target] = (len(submit_args), [])
                submit_args.append(None)
            merged = java_options[target][1]
            merged.extend(option for option in collected if option not in merged)

        for target, (position, options) in java_options.items():
            submit_args[position] = f"--conf={target.property}={' '.join(options)}"

        return [arg for arg in submit_args if arg is not None], app_args


def clean_up_submit_args(
    raw_args: str,
    boolean_flags: Iterable[str] = BOOLEAN_FLAGS,
    strict: bool = False,
) -> tuple[list[str], list[str]]:
    """Turn a raw argument string into (submit tokens, application arguments).

    Args:
        raw_args: the argument string as typed by the user
        boolean_flags: names of the flags taking no value
        strict: raise TokenizeError instead of returning partial results
    """
    submit_args, app_args = SubmitArgsClassifier(boolean_flags).classify(
        tokenize(raw_args, strict=strict)
    )
    logger.debug(
        f"Translated spark-submit arguments: {[mask_password(arg) for arg in submit_args]}"
    )
    logger.debug(f"Translated application arguments: {app_args}")
    return submit_args, app_args
