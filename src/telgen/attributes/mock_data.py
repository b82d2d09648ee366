"""
Mock-data templates for attribute values, headers and log bodies.

A value such as 'MRN{{Number 100000 999999}}' or
'{{RandomString (SliceString "inpatient" "outpatient")}}' is expanded into
realistic fake data. Strings without '{{' pass through unchanged.

Template syntax:
- {{Func arg1 arg2}} calls a vocabulary function (see VOCABULARY)
- arguments are ints, floats, "double-quoted" or `raw` strings, true/false,
  bare function names (called with no arguments) or (nested calls)
- {{.Key}} reads a key from the optional data mapping
- {{- and -}} trim whitespace around an action

All expansions of one engine share a single seeded Faker and random.Random, so a
fixed seed makes a run's mock output reproducible.
"""

import json
import random
import re
import secrets
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from typing import Any

from faker import Faker

OPEN_DELIM = "{{"
CLOSE_DELIM = "}}"


class MockTemplateError(ValueError):
    """A mock-data template could not be parsed or evaluated."""


def is_template(value: Any) -> bool:
    """True when a string carries mock-data template delimiters."""
    return isinstance(value, str) and OPEN_DELIM in value and CLOSE_DELIM in value


@dataclass(frozen=True)
class MockSource:
    """Seeded random sources used by template functions."""

    faker: Faker
    rng: random.Random
    seed: int

    @classmethod
    def create(cls, seed: int = 0) -> "MockSource":
        """Create a source; seed 0 picks a random seed."""
        if not seed:
            seed = secrets.randbits(63) or 1
        faker = Faker()
        faker.seed_instance(seed)
        return cls(faker=faker, rng=random.Random(seed), seed=seed)


# Template AST nodes are plain tuples so parsed templates can be cached:
#   ("text", str) | ("lit", value) | ("field", name) | ("call", name, args)

_TOKEN = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<raw>`[^`]*`)
  | (?P<number>[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?)
  | (?P<field>\.[A-Za-z_][A-Za-z0-9_]*)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    """,
    re.VERBOSE,
)
_ACTION_END = re.compile(r"\s+-}}|}}")


def _tokenize_action(template: str, start: int) -> tuple[list[tuple[str, str]], int, bool]:
    """Tokenize one action body starting after '{{'; return (tokens, end index, trim right)."""
    tokens: list[tuple[str, str]] = []
    pos = start
    while pos < len(template):
        end = _ACTION_END.match(template, pos)
        if end:
            return tokens, end.end(), end.group().endswith("-}}")
        m = _TOKEN.match(template, pos)
        if m is None:
            raise MockTemplateError(
                f"unexpected character {template[pos]!r} at offset {pos} in template {template!r}"
            )
        if m.lastgroup != "space":
            tokens.append((m.lastgroup, m.group()))
        pos = m.end()
    raise MockTemplateError(f"unclosed action in template {template!r}")


def _parse_term(tokens: list[tuple[str, str]], pos: int) -> tuple[tuple, int]:
    kind, text = tokens[pos]
    if kind == "lparen":
        node, pos = _parse_command(tokens, pos + 1, closing=True)
        return node, pos
    if kind == "string":
        try:
            return ("lit", json.loads(text)), pos + 1
        except ValueError as e:
            raise MockTemplateError(f"invalid string literal {text}: {e}") from e
    if kind == "raw":
        return ("lit", text[1:-1]), pos + 1
    if kind == "number":
        try:
            return ("lit", int(text)), pos + 1
        except ValueError:
            return ("lit", float(text)), pos + 1
    if kind == "field":
        return ("field", text[1:]), pos + 1
    if kind == "ident":
        if text in ("true", "false"):
            return ("lit", text == "true"), pos + 1
        if text == "nil":
            return ("lit", None), pos + 1
        return ("call", text, ()), pos + 1
    raise MockTemplateError(f"unexpected {text!r}")


def _parse_command(tokens: list[tuple[str, str]], pos: int, closing: bool) -> tuple[tuple, int]:
    """Parse `Func args...` or a single term, up to ')' (closing) or the end of the action."""
    terms: list[tuple] = []
    head: str | None = None
    while pos < len(tokens):
        kind, text = tokens[pos]
        if kind == "rparen":
            if not closing:
                raise MockTemplateError("unexpected ')'")
            break
        if not terms and head is None and kind == "ident" and text not in ("true", "false", "nil"):
            head = text
            pos += 1
            continue
        term, pos = _parse_term(tokens, pos)
        terms.append(term)
    else:
        if closing:
            raise MockTemplateError("unclosed '('")
    if closing:
        pos += 1
    if head is not None:
        return ("call", head, tuple(terms)), pos
    if not terms:
        raise MockTemplateError("missing value for command")
    if len(terms) > 1:
        raise MockTemplateError("cannot call a non-function value with arguments")
    return terms[0], pos


@lru_cache(maxsize=512)
def parse_template(template: str) -> tuple[tuple, ...]:
    """Parse a template into a tuple of text and expression nodes."""
    nodes: list[tuple] = []
    pos = 0
    trim_next = False
    while True:
        open_at = template.find(OPEN_DELIM, pos)
        text = template[pos:] if open_at < 0 else template[pos:open_at]
        if trim_next:
            text = text.lstrip()
        if open_at < 0:
            if text:
                nodes.append(("text", text))
            return tuple(nodes)
        body_start = open_at + len(OPEN_DELIM)
        if template.startswith("- ", body_start) or template.startswith("-\t", body_start):
            text = text.rstrip()
            body_start += 1
        if text:
            nodes.append(("text", text))
        tokens, pos, trim_next = _tokenize_action(template, body_start)
        node, used = _parse_command(tokens, 0, closing=False)
        if used != len(tokens):
            raise MockTemplateError(f"unexpected tokens in template {template!r}")
        nodes.append(node)


def format_value(value: Any) -> str:
    """Render a template function result as text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<no value>"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(format_value(v) for v in value) + "]"
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return str(value)


class MockTemplateEngine:
    """
    Expand mock-data templates with a shared, seedable random source.

    The source reference is read under a short lock and evaluation happens
    outside it. seed() and reshuffle() swap the whole source atomically, so an
    expansion in progress keeps using the source it started with.
    """

    def __init__(self, seed: int = 0):
        self._lock = threading.Lock()
        self._source = MockSource.create(seed)

    @property
    def current_seed(self) -> int:
        """Seed of the source currently in use."""
        return self._get_source().seed

    def seed(self, seed: int) -> None:
        """Restart the pseudo-random sequence from a fixed seed (0 picks a random one)."""
        source = MockSource.create(seed)
        with self._lock:
            self._source = source

    def reshuffle(self) -> None:
        """Start a fresh pseudo-random sequence with a random seed."""
        self.seed(0)

    def _get_source(self) -> MockSource:
        with self._lock:
            return self._source

    def expand(self, template: str, data: Mapping[str, Any] | None = None) -> str:
        """Expand every {{...}} action in template; plain strings are returned unchanged."""
        if OPEN_DELIM not in template:
            return template
        nodes = parse_template(template)
        source = self._get_source()
        parts: list[str] = []
        for node in nodes:
            if node[0] == "text":
                parts.append(node[1])
            else:
                parts.append(format_value(self._evaluate(node, source, data)))
        return "".join(parts)

    def _evaluate(self, node: tuple, source: MockSource, data: Mapping[str, Any] | None) -> Any:
        kind = node[0]
        if kind == "lit":
            return node[1]
        if kind == "field":
            if data is None or node[1] not in data:
                raise MockTemplateError(f"no entry for key {node[1]!r}")
            return data[node[1]]
        name, arg_nodes = node[1], node[2]
        func = VOCABULARY.get(name)
        if func is None:
            raise MockTemplateError(f'function "{name}" not defined')
        args = [self._evaluate(arg, source, data) for arg in arg_nodes]
        try:
            return func(source, *args)
        except MockTemplateError:
            raise
        except (TypeError, ValueError, IndexError, OverflowError) as e:
            raise MockTemplateError(f"error calling {name}: {e}") from e


def _number(src: MockSource, low: int, high: int) -> int:
    if low > high:
        low, high = high, low
    return src.rng.randint(low, high)


def _float_range(src: MockSource, low: float, high: float) -> float:
    if low > high:
        low, high = high, low
    return src.rng.uniform(low, high)


def _to_date(src: MockSource, text: str) -> date:
    return datetime.strptime(text, "%Y-%m-%d").date()


def _date_range(src: MockSource, start: date, end: date) -> date:
    if not isinstance(start, date) or not isinstance(end, date):
        raise TypeError("DateRange expects dates, use (ToDate \"YYYY-MM-DD\")")
    if start > end:
        start, end = end, start
    return src.faker.date_between(start_date=start, end_date=end)


def _slice(src: MockSource, *items: Any) -> list:
    return list(items)


def _choice(src: MockSource, items: list) -> Any:
    if not isinstance(items, list):
        raise TypeError("expected a slice, use (SliceString ...) or (SliceInt ...)")
    if not items:
        raise ValueError("cannot pick from an empty slice")
    return src.rng.choice(items)


def _hex_uint(src: MockSource, bits: int) -> str:
    if bits not in (8, 16, 32, 64, 128, 256):
        raise ValueError(f"unsupported bit size {bits}")
    return "0x" + format(src.rng.getrandbits(bits), f"0{bits // 4}x")


_HTTP_CLIENT_ERRORS = (
    "bad request",
    "unauthorized",
    "payment required",
    "forbidden",
    "not found",
    "method not allowed",
    "not acceptable",
    "request timeout",
    "conflict",
    "gone",
    "payload too large",
    "too many requests",
)
_HTTP_SERVER_ERRORS = (
    "internal server error",
    "not implemented",
    "bad gateway",
    "service unavailable",
    "gateway timeout",
    "http version not supported",
    "insufficient storage",
)
_DATABASE_ERRORS = (
    "sql error",
    "connection refused",
    "duplicate key value violates unique constraint",
    "deadlock detected",
    "too many connections",
    "query timeout",
    "record not found",
    "relation does not exist",
    "foreign key violation",
)
_GENERIC_ERRORS = (
    "failed to connect",
    "unexpected end of input",
    "invalid argument",
    "permission denied",
    "operation timed out",
    "resource temporarily unavailable",
)
_LOG_LEVELS = ("trace", "debug", "info", "warning", "error", "fatal")
_APP_SUFFIXES = ("ly", "ify", "hub", "io", "base", "works", "stack")


VOCABULARY: dict[str, Callable[..., Any]] = {
    # person
    "Name": lambda src: src.faker.name(),
    "FirstName": lambda src: src.faker.first_name(),
    "LastName": lambda src: src.faker.last_name(),
    "Email": lambda src: src.faker.email(),
    "Phone": lambda src: src.faker.phone_number(),
    "SSN": lambda src: src.faker.ssn(),
    "Username": lambda src: src.faker.user_name(),
    # internet
    "IPv4Address": lambda src: src.faker.ipv4(),
    "IPv6Address": lambda src: src.faker.ipv6(),
    "MacAddress": lambda src: src.faker.mac_address(),
    "URL": lambda src: src.faker.url(),
    "DomainName": lambda src: src.faker.domain_name(),
    "UserAgent": lambda src: src.faker.user_agent(),
    "HTTPMethod": lambda src: src.faker.http_method(),
    "HTTPStatusCode": lambda src: src.faker.http_status_code(include_unassigned=False),
    "UUID": lambda src: str(src.faker.uuid4()),
    # numbers
    "Number": _number,
    "IntRange": _number,
    "Float64Range": _float_range,
    "Bool": lambda src: src.rng.random() < 0.5,
    "Digit": lambda src: str(src.rng.randint(0, 9)),
    "Letter": lambda src: src.rng.choice("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"),
    "HexUint": _hex_uint,
    # text
    "Word": lambda src: src.faker.word(),
    "LoremIpsumWord": lambda src: src.faker.word(),
    "Sentence": lambda src, n=6: src.faker.sentence(nb_words=n),
    "LoremIpsumSentence": lambda src, n=6: src.faker.sentence(
        nb_words=n, variable_nb_words=False
    ),
    "Paragraph": lambda src: src.faker.paragraph(),
    "Color": lambda src: src.faker.color_name(),
    # company
    "Company": lambda src: src.faker.company(),
    "JobTitle": lambda src: src.faker.job(),
    "AppName": lambda src: src.faker.word().capitalize() + src.rng.choice(_APP_SUFFIXES),
    # address
    "Street": lambda src: src.faker.street_address(),
    "City": lambda src: src.faker.city(),
    "State": lambda src: src.faker.state(),
    "Country": lambda src: src.faker.country(),
    "Zip": lambda src: src.faker.postcode(),
    # payment
    "CreditCard": lambda src: src.faker.credit_card_number(),
    "CreditCardNumber": lambda src: src.faker.credit_card_number(),
    "Currency": lambda src: src.faker.currency_code(),
    # dates
    "Date": lambda src: src.faker.date_time(),
    "ToDate": _to_date,
    "DateRange": _date_range,
    # slices
    "SliceString": _slice,
    "SliceInt": _slice,
    "RandomString": _choice,
    "RandomInt": _choice,
    # errors and logs
    "ErrorHTTPClient": lambda src: src.rng.choice(_HTTP_CLIENT_ERRORS),
    "ErrorHTTPServer": lambda src: src.rng.choice(_HTTP_SERVER_ERRORS),
    "ErrorDatabase": lambda src: src.rng.choice(_DATABASE_ERRORS),
    "Error": lambda src: src.rng.choice(_GENERIC_ERRORS),
    "LogLevel": lambda src, kind="general": src.rng.choice(_LOG_LEVELS),
}
