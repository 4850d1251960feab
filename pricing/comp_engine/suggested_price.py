"""
Suggested list price with user override and undo.

States:
- COMPUTED: value follows the engine's computed price
- EDITED: the agent typed a price; recomputation no longer touches it
- REVERTED: undo restored the snapshot taken at the first edit

One SuggestedPrice belongs to one CMA edit session. It is not safe to
mutate from several callers at once.
"""

import logging
from typing import Any, Optional

from .fields import to_number
from .models import SuggestedPriceState


logger = logging.getLogger(__name__)


class SuggestedPrice:
    """
    Holds the suggested price shown for a CMA and its edit history.

    Misuse (undo with nothing to undo, an invalid edit) is a no-op.
    """

    def __init__(self, computed: Optional[int] = None):
        self._state = SuggestedPriceState.COMPUTED
        self._computed: Optional[int] = computed
        self._value: Optional[int] = computed
        self._original: Optional[int] = None

    @property
    def state(self) -> SuggestedPriceState:
        return self._state

    @property
    def value(self) -> Optional[int]:
        """Price to display. None means no price could be derived."""
        return self._value

    @property
    def computed(self) -> Optional[int]:
        """Latest computed price, whether or not it is displayed."""
        return self._computed

    @property
    def original_price(self) -> Optional[int]:
        """Computed price captured at the first edit; what undo restores."""
        return self._original

    @property
    def is_edited(self) -> bool:
        return self._state == SuggestedPriceState.EDITED

    def recompute(self, computed: Optional[int]) -> bool:
        """
        Offer a freshly computed price.

        Applied only when the price is not edited. Returns whether the
        displayed value changed state or value.
        """
        self._computed = computed
        if self.is_edited:
            logger.debug("Suggested price is edited, keeping %s over computed %s", self._value, computed)
            return False

        changed = self._value != computed or self._state != SuggestedPriceState.COMPUTED
        self._value = computed
        self._state = SuggestedPriceState.COMPUTED
        return changed

    def edit(self, value: Any) -> bool:
        """
        Apply an agent-entered price.

        The first edit snapshots the displayed computed price so undo can
        restore it exactly; later edits keep that snapshot.

        Returns:
            False (and leaves state unchanged) when value is not a
            positive number.
        """
        number = to_number(value)
        if number is None or number <= 0:
            logger.warning("Ignoring invalid suggested price edit: %r", value)
            return False

        if not self.is_edited:
            self._original = self._value
        self._value = int(number) if number.is_integer() else number
        self._state = SuggestedPriceState.EDITED
        return True

    def undo(self) -> bool:
        """
        Restore the price from before the first edit.

        No-op unless the price is currently edited.
        """
        if not self.is_edited:
            return False

        self._value = self._original
        self._state = SuggestedPriceState.REVERTED
        return True

    def reset(self, computed: Optional[int]) -> None:
        """Intentional recalculation: discard any edit and show computed."""
        self._computed = computed
        self._value = computed
        self._original = None
        self._state = SuggestedPriceState.COMPUTED

    def to_dict(self) -> dict:
        return {
            "state": self._state.value,
            "value": self._value,
            "computed": self._computed,
            "original_price": self._original,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SuggestedPrice":
        """Restore a persisted edit session. Unknown states load as computed."""
        price = cls(data.get("computed"))
        try:
            price._state = SuggestedPriceState(data.get("state", "computed"))
        except ValueError:
            price._state = SuggestedPriceState.COMPUTED
        price._value = data.get("value", price._computed)
        price._original = data.get("original_price")
        return price
