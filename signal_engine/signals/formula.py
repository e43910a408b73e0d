"""
Textual rule syntax <-> Condition.

    RSI(14) < 30 AND SMA(20) > SMA(60)
    SMA(5) cross_above SMA(20)
    (RSI(14) < 30 OR MACD cross_above Signal) AND Volume > Volume_MA(20) * 2
    Price > Low_52W * 1.3

AND binds tighter than OR; keywords are case-insensitive. Indicator names are
matched case-insensitively against ALIASES; arguments in parentheses are
positional (see POSITIONAL_PARAMS).
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from signal_engine.core.exceptions import ConditionError, FormulaError
from signal_engine.signals.conditions import (
    DEFAULT_PARAMS,
    KIND_FAMILY,
    ArithmeticExpression,
    ArithmeticOperator,
    ComparisonOperator,
    Condition,
    CrossDirection,
    CrossoverCondition,
    IndicatorFamily,
    IndicatorKind,
    IndicatorRef,
    LogicalCondition,
    LogicalOperator,
    SingleCondition,
    Term,
    format_number,
)

WEEKS_52_PERIOD = 252

ALIASES: Dict[str, IndicatorKind] = {
    "PRICE": IndicatorKind.PRICE,
    "CLOSE": IndicatorKind.PRICE,
    "VOLUME": IndicatorKind.VOLUME,
    "VOLUME_MA": IndicatorKind.VOLUME_MA,
    "VOL_MA": IndicatorKind.VOLUME_MA,
    "HIGH": IndicatorKind.HIGH_N,
    "HIGH_N": IndicatorKind.HIGH_N,
    "HIGH_52W": IndicatorKind.HIGH_N,
    "LOW": IndicatorKind.LOW_N,
    "LOW_N": IndicatorKind.LOW_N,
    "LOW_52W": IndicatorKind.LOW_N,
    "SMA": IndicatorKind.SMA,
    "EMA": IndicatorKind.EMA,
    "RSI": IndicatorKind.RSI,
    "MACD": IndicatorKind.MACD,
    "MACD_SIGNAL": IndicatorKind.MACD_SIGNAL,
    "SIGNAL": IndicatorKind.MACD_SIGNAL,
    "MACD_HISTOGRAM": IndicatorKind.MACD_HISTOGRAM,
    "HISTOGRAM": IndicatorKind.MACD_HISTOGRAM,
    "STOCHASTIC_K": IndicatorKind.STOCHASTIC_K,
    "STOCH_K": IndicatorKind.STOCHASTIC_K,
    "STOCHASTIC_D": IndicatorKind.STOCHASTIC_D,
    "STOCH_D": IndicatorKind.STOCHASTIC_D,
    "BOLLINGER_UPPER": IndicatorKind.BOLLINGER_UPPER,
    "BB_UPPER": IndicatorKind.BOLLINGER_UPPER,
    "BOLLINGER_MIDDLE": IndicatorKind.BOLLINGER_MIDDLE,
    "BB_MIDDLE": IndicatorKind.BOLLINGER_MIDDLE,
    "BOLLINGER_LOWER": IndicatorKind.BOLLINGER_LOWER,
    "BB_LOWER": IndicatorKind.BOLLINGER_LOWER,
    "OBV": IndicatorKind.OBV,
    "ATR": IndicatorKind.ATR,
}

_FIXED_52W = {"HIGH_52W", "LOW_52W"}

POSITIONAL_PARAMS: Dict[IndicatorFamily, Tuple[str, ...]] = {
    IndicatorFamily.CLOSE: (),
    IndicatorFamily.VOLUME: (),
    IndicatorFamily.OBV: (),
    IndicatorFamily.VOLUME_MA: ("period",),
    IndicatorFamily.HIGH_N: ("period",),
    IndicatorFamily.LOW_N: ("period",),
    IndicatorFamily.SMA: ("period",),
    IndicatorFamily.EMA: ("period",),
    IndicatorFamily.RSI: ("period",),
    IndicatorFamily.ATR: ("period",),
    IndicatorFamily.MACD: ("fast", "slow", "signal"),
    IndicatorFamily.STOCHASTIC: ("k_period", "d_period", "smooth_k"),
    IndicatorFamily.BOLLINGER: ("period", "std_dev"),
}

# Canonical name and the minimum number of positional args always written out.
_CANONICAL: Dict[IndicatorKind, Tuple[str, int]] = {
    IndicatorKind.PRICE: ("Price", 0),
    IndicatorKind.VOLUME: ("Volume", 0),
    IndicatorKind.VOLUME_MA: ("Volume_MA", 1),
    IndicatorKind.HIGH_N: ("High", 1),
    IndicatorKind.LOW_N: ("Low", 1),
    IndicatorKind.SMA: ("SMA", 1),
    IndicatorKind.EMA: ("EMA", 1),
    IndicatorKind.RSI: ("RSI", 1),
    IndicatorKind.MACD: ("MACD", 0),
    IndicatorKind.MACD_SIGNAL: ("MACD_Signal", 0),
    IndicatorKind.MACD_HISTOGRAM: ("MACD_Histogram", 0),
    IndicatorKind.STOCHASTIC_K: ("Stochastic_K", 2),
    IndicatorKind.STOCHASTIC_D: ("Stochastic_D", 2),
    IndicatorKind.BOLLINGER_UPPER: ("Bollinger_Upper", 2),
    IndicatorKind.BOLLINGER_MIDDLE: ("Bollinger_Middle", 1),
    IndicatorKind.BOLLINGER_LOWER: ("Bollinger_Lower", 2),
    IndicatorKind.OBV: ("OBV", 0),
    IndicatorKind.ATR: ("ATR", 1),
}

_COMPARISONS = {
    ">": ComparisonOperator.GT,
    ">=": ComparisonOperator.GTE,
    "<": ComparisonOperator.LT,
    "<=": ComparisonOperator.LTE,
    "==": ComparisonOperator.EQ,
    "=": ComparisonOperator.EQ,
}

_ARITHMETIC = {
    "+": ArithmeticOperator.ADD,
    "-": ArithmeticOperator.SUB,
    "*": ArithmeticOperator.MUL,
    "/": ArithmeticOperator.DIV,
}


# ---------- Condition -> text ----------

def indicator_to_formula(ref: IndicatorRef) -> str:
    if ref.kind in (IndicatorKind.HIGH_N, IndicatorKind.LOW_N) and ref.param("period") == WEEKS_52_PERIOD:
        return "High_52W" if ref.kind is IndicatorKind.HIGH_N else "Low_52W"
    name, minimum = _CANONICAL[ref.kind]
    params = ref.param_dict
    defaults = DEFAULT_PARAMS[ref.family]
    names = POSITIONAL_PARAMS[ref.family]
    count = minimum
    for pos, pname in enumerate(names):
        if params[pname] != defaults[pname]:
            count = max(count, pos + 1)
    if count == 0:
        return name
    return f"{name}({','.join(format_number(params[p]) for p in names[:count])})"


def _term_to_formula(term: Term) -> str:
    if isinstance(term, IndicatorRef):
        return indicator_to_formula(term)
    return format_number(term)


def _operand_to_formula(operand) -> str:
    if isinstance(operand, ArithmeticExpression):
        return f"{_term_to_formula(operand.left)} {operand.operator.symbol} {_term_to_formula(operand.right)}"
    return _term_to_formula(operand)


def condition_to_formula(condition: Condition) -> str:
    """Canonical text; parse_formula(condition_to_formula(c)) == c."""
    if isinstance(condition, SingleCondition):
        return (
            f"{_operand_to_formula(condition.indicator)} {condition.operator.symbol} "
            f"{_operand_to_formula(condition.value)}"
        )
    if isinstance(condition, CrossoverCondition):
        op = "cross_above" if condition.direction is CrossDirection.UP else "cross_below"
        return f"{indicator_to_formula(condition.first)} {op} {indicator_to_formula(condition.second)}"
    if isinstance(condition, LogicalCondition):
        parts = []
        for child in condition.conditions:
            text = condition_to_formula(child)
            parts.append(f"({text})" if isinstance(child, LogicalCondition) else text)
        return f" {condition.operator.value.upper()} ".join(parts)
    raise TypeError(f"Unknown condition type: {type(condition).__name__}")


# ---------- text -> Condition ----------

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<cross>cross_above|cross_below)\b
    |(?P<logic>and|or)\b
    |(?P<cmp>>=|<=|==|>|<|=)
    |(?P<number>\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<arith>[-+*/])
    |(?P<lparen>\()
    |(?P<rparen>\))
    |(?P<comma>,)
    """,
    re.VERBOSE | re.IGNORECASE,
)


@dataclass(frozen=True)
class Token:
    type: str
    text: str
    pos: int


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise FormulaError(f"Unexpected character {text[pos]!r} at position {pos}")
        kind = m.lastgroup
        if kind != "ws":
            tokens.append(Token(kind, m.group(), pos))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Token]:
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else None

    def take(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise FormulaError("Unexpected end of formula")
        self.pos += 1
        return tok

    def expect(self, ttype: str) -> Token:
        tok = self.take()
        if tok.type != ttype:
            raise FormulaError(f"Expected {ttype}, got {tok.text!r} at position {tok.pos}")
        return tok

    def _is_logic(self, word: str) -> bool:
        tok = self.peek()
        return tok is not None and tok.type == "logic" and tok.text.upper() == word

    def parse(self) -> Condition:
        cond = self.parse_or()
        tok = self.peek()
        if tok is not None:
            raise FormulaError(f"Unexpected {tok.text!r} at position {tok.pos}")
        return cond

    def parse_or(self) -> Condition:
        parts = [self.parse_and()]
        while self._is_logic("OR"):
            self.take()
            parts.append(self.parse_and())
        return parts[0] if len(parts) == 1 else LogicalCondition(LogicalOperator.OR, tuple(parts))

    def parse_and(self) -> Condition:
        parts = [self.parse_primary()]
        while self._is_logic("AND"):
            self.take()
            parts.append(self.parse_primary())
        return parts[0] if len(parts) == 1 else LogicalCondition(LogicalOperator.AND, tuple(parts))

    def parse_primary(self) -> Condition:
        tok = self.peek()
        if tok is None:
            raise FormulaError("Unexpected end of formula")
        if tok.type == "lparen":
            self.take()
            cond = self.parse_or()
            self.expect("rparen")
            return cond
        return self.parse_comparison()

    def parse_comparison(self) -> Condition:
        left = self.parse_operand()
        tok = self.take()
        if tok.type == "cross":
            right = self.parse_operand()
            if not isinstance(left, IndicatorRef) or not isinstance(right, IndicatorRef):
                raise FormulaError(f"{tok.text} needs an indicator on both sides")
            direction = CrossDirection.UP if tok.text.lower() == "cross_above" else CrossDirection.DOWN
            return CrossoverCondition(left, right, direction)
        if tok.type == "cmp":
            right = self.parse_operand()
            if not isinstance(left, (IndicatorRef, ArithmeticExpression)):
                raise FormulaError(f"Left side of {tok.text!r} must reference an indicator")
            return SingleCondition(left, _COMPARISONS[tok.text], right)
        raise FormulaError(f"Expected comparison or cross operator, got {tok.text!r} at position {tok.pos}")

    def parse_operand(self):
        left = self.parse_term()
        tok = self.peek()
        if tok is not None and tok.type == "arith":
            self.take()
            right = self.parse_term()
            return ArithmeticExpression(left, _ARITHMETIC[tok.text], right)
        return left

    def parse_term(self) -> Term:
        tok = self.take()
        if tok.type == "arith" and tok.text == "-":
            return -float(self.expect("number").text)
        if tok.type == "number":
            return float(tok.text)
        if tok.type == "ident":
            return self.parse_indicator(tok)
        raise FormulaError(f"Expected value or indicator, got {tok.text!r} at position {tok.pos}")

    def parse_indicator(self, tok: Token) -> IndicatorRef:
        name = tok.text.upper()
        kind = ALIASES.get(name)
        if kind is None:
            raise FormulaError(f"Unknown indicator {tok.text!r} at position {tok.pos}")
        args: List[float] = []
        nxt = self.peek()
        if nxt is not None and nxt.type == "lparen":
            self.take()
            args.append(float(self.expect("number").text))
            while self.peek() is not None and self.peek().type == "comma":
                self.take()
                args.append(float(self.expect("number").text))
            self.expect("rparen")

        ref_family = KIND_FAMILY[kind][0]
        names = POSITIONAL_PARAMS[ref_family]
        if name in _FIXED_52W:
            if args:
                raise FormulaError(f"{tok.text} takes no arguments")
            params = {"period": WEEKS_52_PERIOD}
        else:
            if len(args) > len(names):
                raise FormulaError(f"{tok.text} takes at most {len(names)} argument(s), got {len(args)}")
            params = dict(zip(names, args))
        try:
            return IndicatorRef(kind, tuple(params.items()))
        except ConditionError as e:
            raise FormulaError(f"{tok.text}: {e}") from None


def parse_formula(text: str) -> Condition:
    """Parse a textual rule. Raises FormulaError on any syntax or parameter problem."""
    if not text or not text.strip():
        raise FormulaError("Formula is empty")
    tokens = tokenize(text)
    try:
        return _Parser(tokens).parse()
    except FormulaError:
        raise
    except ConditionError as e:
        raise FormulaError(str(e)) from None


def validate_formula(text: str) -> Tuple[bool, Optional[str]]:
    """(True, None) when text parses, else (False, error message)."""
    try:
        parse_formula(text)
    except FormulaError as e:
        return False, str(e)
    return True, None
