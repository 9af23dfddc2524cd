# app/data/expressions.py
"""
Warunki zapisu (condition expressions) i wyrazenia aktualizacji.

Warunek jest sprawdzany przez gateway w tej samej transakcji bazy co zapis,
wiec warunek i zapis sa atomowe.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Condition:
    op: str
    attr: Optional[str] = None
    value: Any = None
    parts: Tuple["Condition", ...] = ()

    def __and__(self, other: "Condition") -> "Condition":
        return Condition("and", parts=(self, other))

    def evaluate(self, item: Optional[Dict[str, Any]]) -> bool:
        if self.op == "and":
            return all(p.evaluate(item) for p in self.parts)

        present = item is not None and self.attr in item
        if self.op == "exists":
            return present
        if self.op == "not_exists":
            return not present

        #porownania na brakujacym atrybucie zawsze false
        if not present:
            return False
        current = item[self.attr]
        if self.op == "eq":
            return current == self.value
        if self.op == "gte":
            return current >= self.value

        raise ValueError(f"Unsupported condition operator: {self.op}")

    def __str__(self) -> str:
        if self.op == "and":
            return " AND ".join(f"({p})" for p in self.parts)
        if self.op == "exists":
            return f"attribute_exists({self.attr})"
        if self.op == "not_exists":
            return f"attribute_not_exists({self.attr})"
        symbol = {"eq": "=", "gte": ">="}.get(self.op, self.op)
        return f"{self.attr} {symbol} {self.value!r}"


def attribute_exists(attr: str) -> Condition:
    return Condition("exists", attr)


def attribute_not_exists(attr: str) -> Condition:
    return Condition("not_exists", attr)


def equals(attr: str, value: Any) -> Condition:
    return Condition("eq", attr, value)


def at_least(attr: str, value: Any) -> Condition:
    return Condition("gte", attr, value)


@dataclass(frozen=True)
class UpdateExpression:
    """SET attr = value oraz ADD attr delta (delta moze byc ujemna)."""

    set: Dict[str, Any] = field(default_factory=dict)
    add: Dict[str, int] = field(default_factory=dict)

    def apply(self, key: Tuple[str, str], current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        #update na nieistniejacym kluczu tworzy item (jak upsert)
        new = dict(current) if current is not None else {"PK": key[0], "SK": key[1]}
        new.update(self.set)
        for attr, delta in self.add.items():
            new[attr] = new.get(attr, 0) + delta
        return new

    def __str__(self) -> str:
        parts = [f"{k} = {v!r}" for k, v in self.set.items()]
        parts += [f"{k} = {k} + {d}" for k, d in self.add.items()]
        return "SET " + ", ".join(parts)
