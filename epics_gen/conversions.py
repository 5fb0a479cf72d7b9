"""
Conversion Capability
=====================
Strategies that turn a single CellValue into a typed Python value.

Two families do the heavy lifting:

* **string-driven** rules (``SubstitutionRule``, ``TextRule``) inspect
  text cells; a substitution rule resolves enum-like targets by scanning
  an ordered ``(pattern, variant)`` list, first match wins.
* **numeric-driven** rules (``NumericRule``) accept number cells only and
  optionally wrap the float into a target type (a "newtype").

``ConversionRegistry`` maps a target type to the rule that produces it,
so row schemas can be derived from annotated dataclasses.
"""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .cells import CellKind, CellValue
from .errors import (
    InvalidValueError,
    MissingValueError,
    NoMatchingPatternError,
    SourceCellError,
    TypeMismatchError,
)

logger = logging.getLogger(__name__)


class ConversionRule(ABC):
    """Turns one cell into one value or raises a ConversionError."""

    expected = "value"

    @abstractmethod
    def convert(self, cell: CellValue) -> Any:
        """Convert ``cell`` or raise ``ConversionError``."""

    def _check_kind(self, cell: CellValue, kind: CellKind) -> None:
        if cell.kind is CellKind.ERROR:
            raise SourceCellError(cell)
        if cell.kind is CellKind.EMPTY:
            raise MissingValueError(cell, self.expected)
        if cell.kind is not kind:
            raise TypeMismatchError(cell, self.expected)


@dataclass(frozen=True)
class SubstitutionRule(ConversionRule):
    """Ordered ``(pattern, variant)`` pairs; the first equal pattern wins."""
    patterns: tuple
    case_sensitive: bool = True

    expected = "text"

    def __post_init__(self):
        object.__setattr__(self, "patterns", tuple((str(p), v) for p, v in self.patterns))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], case_sensitive: bool = True) -> "SubstitutionRule":
        return cls(tuple(mapping.items()), case_sensitive)

    @classmethod
    def from_enum(cls, enum_cls: type, case_sensitive: bool = True,
                  aliases: Optional[Mapping[str, Any]] = None) -> "SubstitutionRule":
        """Match cells against member names, then against ``aliases``."""
        pairs = [(member.name, member) for member in enum_cls]
        if aliases:
            pairs.extend(aliases.items())
        return cls(tuple(pairs), case_sensitive)

    def _matches(self, pattern: str, text: str) -> bool:
        if self.case_sensitive:
            return pattern == text
        return pattern.casefold() == text.casefold()

    def convert(self, cell: CellValue) -> Any:
        self._check_kind(cell, CellKind.TEXT)
        text = cell.value
        for pattern, variant in self.patterns:
            if self._matches(pattern, text):
                return variant
        raise NoMatchingPatternError(cell, text)


@dataclass(frozen=True)
class TextRule(ConversionRule):
    """Pass text through unchanged (optionally stripped)."""
    strip: bool = False

    expected = "text"

    def convert(self, cell: CellValue) -> str:
        self._check_kind(cell, CellKind.TEXT)
        return cell.value.strip() if self.strip else cell.value


@dataclass(frozen=True)
class NumericRule(ConversionRule):
    """Accept number cells only; never parse numbers out of text."""
    wrapper: Optional[Callable[[float], Any]] = None

    expected = "number"

    def convert(self, cell: CellValue) -> Any:
        self._check_kind(cell, CellKind.NUMBER)
        if self.wrapper is None:
            return cell.value
        try:
            return self.wrapper(cell.value)
        except (TypeError, ValueError) as exc:
            raise InvalidValueError(f"Invalid value {cell}: {exc}", cell) from exc


def integral(value: float) -> int:
    if not value.is_integer():
        raise ValueError(f"{value} is not an integer")
    return int(value)


@dataclass(frozen=True)
class BooleanRule(ConversionRule):
    expected = "boolean"

    def convert(self, cell: CellValue) -> bool:
        self._check_kind(cell, CellKind.BOOLEAN)
        return cell.value


def convert(cell: CellValue, rule: ConversionRule) -> Any:
    """Apply ``rule`` to ``cell``."""
    return rule.convert(cell)


RuleFactory = Union[ConversionRule, Callable[[type], ConversionRule]]


class ConversionRegistry:
    """Explicit target-type -> rule mapping.

    Entries are either a ready rule or a factory taking the target type.
    Enum subclasses resolve to a SubstitutionRule over their member names;
    unknown classes are treated as numeric newtypes wrapping a float.
    """

    def __init__(self, rules: Optional[Mapping[type, RuleFactory]] = None):
        self._rules: dict[type, RuleFactory] = {
            float: NumericRule(),
            int: NumericRule(wrapper=integral),
            str: TextRule(),
            bool: BooleanRule(),
        }
        if rules:
            self._rules.update(rules)

    def register(self, target: type, rule: RuleFactory) -> None:
        self._rules[target] = rule

    def copy(self) -> "ConversionRegistry":
        return ConversionRegistry(self._rules)

    def _resolve(self, entry: RuleFactory, target: type) -> ConversionRule:
        return entry if isinstance(entry, ConversionRule) else entry(target)

    def rule_for(self, target: type) -> ConversionRule:
        if target in self._rules:
            return self._resolve(self._rules[target], target)
        # IntEnum and friends also inherit from int; member names win
        if isinstance(target, type) and issubclass(target, enum.Enum):
            return SubstitutionRule.from_enum(target)
        if callable(target):
            logger.debug(f"No rule registered for {target!r}; using numeric wrapper")
            return NumericRule(wrapper=target)
        raise TypeError(f"Cannot derive a conversion rule for {target!r}")


DEFAULT_REGISTRY = ConversionRegistry()


def pairs_from(patterns: Union[Mapping[str, Any], Iterable[Sequence[Any]]]) -> tuple:
    """Normalise a mapping or list of 2-item sequences to ``(pattern, variant)`` pairs."""
    if isinstance(patterns, Mapping):
        return tuple(patterns.items())
    pairs = []
    for item in patterns:
        if len(item) != 2:
            raise ValueError(f"Expected a (pattern, variant) pair, got {item!r}")
        pairs.append((item[0], item[1]))
    return tuple(pairs)
