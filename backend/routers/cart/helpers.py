"""
Client-side cart draft. The storefront keeps this in local storage; the server
never trusts it and re-prices it at validation and placement time.
"""
from typing import Dict, List, Any, Optional
import json


class Cart:
    """Mapping of product id -> quantity, insertion ordered"""

    def __init__(self, items: Optional[Dict[str, int]] = None):
        self._items: Dict[str, int] = {}
        for product_id, quantity in (items or {}).items():
            self.update(product_id, quantity)

    def add(self, product_id: str, quantity: int = 1):
        """Adding a product already in the cart increases its quantity"""
        if quantity <= 0:
            return
        self._items[product_id] = self._items.get(product_id, 0) + quantity

    def update(self, product_id: str, quantity: int):
        """Set an absolute quantity; zero or less removes the line"""
        if quantity <= 0:
            self.remove(product_id)
        else:
            self._items[product_id] = quantity

    def remove(self, product_id: str):
        self._items.pop(product_id, None)

    def clear(self):
        self._items.clear()

    def quantity_of(self, product_id: str) -> int:
        return self._items.get(product_id, 0)

    @property
    def item_count(self) -> int:
        return sum(self._items.values())

    def __len__(self):
        return len(self._items)

    def __contains__(self, product_id):
        return product_id in self._items

    def lines(self) -> List[Dict[str, Any]]:
        return [
            {"product_id": product_id, "quantity": quantity}
            for product_id, quantity in self._items.items()
        ]

    def to_json(self) -> str:
        return json.dumps(self.lines())

    @classmethod
    def from_json(cls, payload: str) -> "Cart":
        """Malformed or non-list payloads give an empty cart"""
        cart = cls()
        try:
            lines = json.loads(payload) if payload else []
        except (TypeError, ValueError):
            return cart
        if not isinstance(lines, list):
            return cart
        for line in lines:
            if not isinstance(line, dict):
                continue
            product_id = line.get("product_id")
            quantity = line.get("quantity")
            if isinstance(product_id, str) and isinstance(quantity, int):
                cart.add(product_id, quantity)
        return cart
