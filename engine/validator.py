"""
Validate purchase requests: quantity parsing, unlock gates, affordability.
Every check raises before anything is mutated.
"""
from __future__ import annotations
from typing import Any, Mapping, Tuple

from engine.errors import InsufficientResources, InvalidArgument, LockedError
from engine.state import GameState

ALL = "all"


def parse_quantity(raw: Any):
    """Return a positive int, or ALL. Accepts ints and command-line strings."""
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == ALL:
            return ALL
        try:
            raw = int(text)
        except ValueError:
            raise InvalidArgument(f"Invalid quantity {raw!r}. Please enter a valid number or 'all'.") from None
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidArgument(f"Quantity must be an integer, got {raw!r}.")
    if raw < 1:
        raise InvalidArgument(f"Quantity must be at least 1, got {raw}.")
    return raw


def purchasable(name: str, definitions: Mapping[str, dict]) -> bool:
    definition = definitions.get(name)
    return bool(definition) and definition.get("cost_resource") is not None and definition.get("cost", 0) > 0


def max_affordable(gs: GameState, name: str, definitions: Mapping[str, dict]) -> int:
    """How many units of name the current cost resource pays for."""
    if not purchasable(name, definitions):
        return 0
    definition = definitions[name]
    return gs.count(definition["cost_resource"]) // definition["cost"]


def validate_purchase(
    gs: GameState,
    name: str,
    quantity: Any,
    definitions: Mapping[str, dict],
) -> Tuple[int, int]:
    """
    Check a purchase against gs.
    Returns (quantity, total_cost) or raises InvalidArgument / LockedError /
    InsufficientResources.
    """
    if name not in definitions:
        raise InvalidArgument(f"Unknown resource {name!r}.")
    if not purchasable(name, definitions):
        raise InvalidArgument(f"{name.capitalize()}s cannot be bought.")

    quantity = parse_quantity(quantity)
    definition = definitions[name]
    unit_cost = definition["cost"]
    cost_resource = definition["cost_resource"]

    res = gs.get(name)
    gate = definition.get("unlock")
    if not res.unlocked and gate is not None:
        requires, threshold = gate
        raise LockedError(name, requires, threshold)

    available = gs.count(cost_resource)
    if quantity == ALL:
        quantity = available // unit_cost
        if quantity < 1:
            raise InsufficientResources(
                cost_resource, unit_cost, available,
                f"You need at least {unit_cost} {cost_resource}s to buy a {name}.",
            )

    total_cost = quantity * unit_cost
    if available < total_cost:
        raise InsufficientResources(
            cost_resource, total_cost, available,
            f"You need at least {total_cost} {cost_resource}s to buy {quantity} new {name}(s).",
        )
    return quantity, total_cost
