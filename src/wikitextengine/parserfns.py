# Definitions for the parser functions and magic variables supported in
# template expansion
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import datetime
import html
import re
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Optional, Union

import dateparser

from .nodes import Node, split_named
from .title import get_namespace_table

if TYPE_CHECKING:
    # Reached only by mypy or other type-checker
    from .state import ParseState

Expander = Callable[[Sequence[Node]], str]
ParserFunction = Callable[["ParseState", str, list[list[Node]], Expander], str]


def capitalize_first_only(s: str) -> str:
    if not s:
        return s
    return s[0].upper() + s[1:]


# Plain decimal numbers with an optional exponent.  Names such as "nan" or
# "inf" and digits with underscores compare as strings.
NUMBER_RE = re.compile(r"\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?\s*")


def _number(s: str) -> Optional[float]:
    if not NUMBER_RE.fullmatch(s):
        return None
    return float(s)


def _values_equal(a: str, b: str) -> bool:
    """Compares like MediaWiki: numerically if both look like numbers."""
    x = _number(a)
    y = _number(b)
    if x is not None and y is not None:
        return x == y
    return a == b


def if_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements #if parser function."""
    arg0 = args[0] if args else []
    arg1 = args[1] if len(args) >= 2 else []
    arg2 = args[2] if len(args) >= 3 else []
    if expander(arg0).strip():
        return expander(arg1).strip()
    return expander(arg2).strip()


def ifeq_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements #ifeq parser function."""
    arg0 = args[0] if args else []
    arg1 = args[1] if len(args) >= 2 else []
    arg2 = args[2] if len(args) >= 3 else []
    arg3 = args[3] if len(args) >= 4 else []
    if _values_equal(expander(arg0).strip(), expander(arg1).strip()):
        return expander(arg2).strip()
    return expander(arg3).strip()


def switch_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements #switch parser function.  Unnamed cases fall through to
    the next case with a value; an unnamed last argument is the default."""
    val = expander(args[0]).strip() if args else ""
    match_next = False
    defval: Optional[list[Node]] = None
    last: Optional[str] = None
    for arg in args[1:]:
        split = split_named(arg)
        if split is None:
            last = expander(arg).strip()
            if _values_equal(last, val):
                match_next = True
            continue
        k, v = split
        key = expander(k).strip()
        if match_next or _values_equal(key, val):
            return expander(v).strip()
        if key == "#default":
            defval = v
        last = None
    if last is not None:
        return last
    if defval is not None:
        return expander(defval).strip()
    return ""


def lc_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the lc parser function (lowercase)."""
    return expander(args[0]).strip().lower() if args else ""


def lcfirst_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the lcfirst parser function (lowercase first character)."""
    t = expander(args[0]).strip() if args else ""
    if not t:
        return t
    return t[0].lower() + t[1:]


def uc_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the uc parser function (uppercase)."""
    return expander(args[0]).strip().upper() if args else ""


def ucfirst_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the ucfirst parser function (capitalize first character)."""
    t = expander(args[0]).strip() if args else ""
    return capitalize_first_only(t)


def ns_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the ns parser function: {{ns:10}} and {{ns:template}} both
    give the local name of the namespace."""
    table = get_namespace_table(state.options.lang_code)
    t = expander(args[0]).strip() if args else ""
    if t.lstrip("-").isdigit():
        return table.name(int(t))
    ns_id = table.id_for_prefix(t)
    if ns_id is None:
        return ""
    return table.name(ns_id)


def month_num_days(t: datetime.datetime) -> int:
    next_month = t.replace(day=28) + datetime.timedelta(days=4)
    return (next_month - datetime.timedelta(days=next_month.day)).day


# Format characters of #time.  Strings are strftime() formats.
time_fmt_map: dict[
    str, Union[str, Callable[[datetime.datetime], Union[int, float, str]]]
] = {
    "Y": "%Y",
    "y": "%y",
    "L": lambda t: 1
    if (t.year % 4 == 0 and (t.year % 100 != 0 or t.year % 400 == 0))
    else 0,
    "n": lambda t: t.month,
    "m": "%m",
    "M": "%b",
    "F": "%B",
    "xg": "%B",  # Should be in genitive
    "j": lambda t: t.day,
    "d": "%d",
    "z": lambda t: t.timetuple().tm_yday - 1,
    "N": "%u",
    "w": "%w",
    "D": "%a",
    "l": "%A",
    "a": lambda t: "am" if t.hour < 12 else "pm",
    "A": lambda t: "AM" if t.hour < 12 else "PM",
    "g": lambda t: (t.hour + 11) % 12 + 1,
    "h": "%I",
    "G": lambda t: t.hour,
    "H": "%H",
    "i": "%M",
    "s": "%S",
    "U": lambda t: int(t.timestamp()),
    "e": "%Z",
    "T": "%Z",
    "t": month_num_days,
    "c": lambda t: t.isoformat(),
}

_TIME_FMT_RE = re.compile(r'\\.|"[^"]*"|xg|.', re.S)


def format_time(fmt: str, t: datetime.datetime) -> str:
    """Formats ``t`` using PHP date() style format characters, as the #time
    parser function and signatures do.  Double quotes and backslash escape
    literal text; unknown characters are copied."""

    def fmt_repl(m: re.Match[str]) -> str:
        f = m.group(0)
        if len(f) > 1 and f.startswith('"') and f.endswith('"'):
            return f[1:-1]
        if f.startswith("\\") and len(f) == 2:
            return f[1]
        v = time_fmt_map.get(f)
        if v is None:
            return f
        if isinstance(v, str):
            return t.strftime(v)
        return str(v(t))

    return _TIME_FMT_RE.sub(fmt_repl, fmt)


def time_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the #time parser function."""
    fmt = expander(args[0]).strip() if args else ""
    dt = expander(args[1]).strip() if len(args) >= 2 else ""

    t: Optional[datetime.datetime]
    if not dt:
        t = state.timestamp
    elif dt.startswith("@"):
        try:
            t = datetime.datetime.fromtimestamp(
                float(dt[1:]), datetime.timezone.utc
            )
        except (ValueError, OverflowError):
            t = None
    else:
        settings: dateparser._Settings = {
            "RETURN_AS_TIMEZONE_AWARE": True,
            "TIMEZONE": "UTC",
            "RELATIVE_BASE": state.timestamp.replace(tzinfo=None),
        }
        t = dateparser.parse(dt, settings=settings)
    if t is None:
        state.warning(
            "unrecognized time syntax in {}: {!r}".format(fn_name, dt),
            sortid="parserfns/time",
        )
        return '<strong class="error">Bad time syntax: {}</strong>'.format(
            html.escape(dt)
        )
    return format_time(fmt, t)


PARSER_FUNCTIONS: dict[str, ParserFunction] = {
    "if": if_fn,
    "ifeq": ifeq_fn,
    "switch": switch_fn,
    "time": time_fn,
    "lc": lc_fn,
    "uc": uc_fn,
    "lcfirst": lcfirst_fn,
    "ucfirst": ucfirst_fn,
    "ns": ns_fn,
}


def pagename_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the PAGENAME magic word."""
    return state.title.text


def fullpagename_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the FULLPAGENAME magic word."""
    return state.title.full_text


def namespace_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the NAMESPACE magic word."""
    return state.title.namespace_name


def namespacenumber_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the NAMESPACENUMBER magic word."""
    return str(state.title.namespace_id)


def currentyear_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the CURRENTYEAR magic word."""
    return str(state.timestamp.year)


def currentmonth_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the CURRENTMONTH magic word."""
    return "{:02d}".format(state.timestamp.month)


def currentday_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the CURRENTDAY magic word."""
    return str(state.timestamp.day)


def currentday2_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements the CURRENTDAY2 magic word."""
    return "{:02d}".format(state.timestamp.day)


def currenttime_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    return state.timestamp.strftime("%H:%M")


def currenttimestamp_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    return state.timestamp.strftime("%Y%m%d%H%M%S")


def pipe_fn(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Implements {{!}}, which gives a literal pipe."""
    return "|"


VARIABLES: dict[str, ParserFunction] = {
    "pagename": pagename_fn,
    "fullpagename": fullpagename_fn,
    "namespace": namespace_fn,
    "namespacenumber": namespacenumber_fn,
    "currentyear": currentyear_fn,
    "currentmonth": currentmonth_fn,
    "currentday": currentday_fn,
    "currentday2": currentday2_fn,
    "currenttime": currenttime_fn,
    "currenttimestamp": currenttimestamp_fn,
    "!": pipe_fn,
}


def call_parser_function(
    state: "ParseState",
    fn_name: str,
    args: list[list[Node]],
    expander: Expander,
) -> str:
    """Calls the given parser function or variable with the given
    arguments."""
    assert isinstance(fn_name, str)
    assert callable(expander)
    fn = PARSER_FUNCTIONS.get(fn_name) or VARIABLES.get(fn_name)
    if fn is None:
        state.error(
            "unrecognized parser function {!r}".format(fn_name),
            sortid="parserfns/unknown",
        )
        return ""
    return fn(state, fn_name, args, expander)
