"""Forward only changed field values to the rendering side."""

from __future__ import annotations
from typing import Any, Dict, Iterable, Mapping
from .models import CODE_FIELDS, FieldSpec, FieldUpdate


class UpdateCoalescer:
    """
    Remembers the last value emitted per field and drops repeats.

    Near the end of a long value many chunks arrive before its closing quote,
    and re-extraction returns the same text each time; those are swallowed here.

    Example:
        >>> coalescer = UpdateCoalescer()
        >>> coalescer.update("html", "<p>")
        FieldUpdate(field_name='html', value='<p>')
        >>> coalescer.update("html", "<p>") is None
        True
    """

    def __init__(
        self,
        fields: Iterable[FieldSpec] = CODE_FIELDS,
        seed: Mapping[str, str] | None = None,
    ) -> None:
        """
        Args:
            fields: Fields tracked by this coalescer.
            seed: Values already on screen (e.g. the code being modified).
                Fields without a seed start out empty.
        """
        seed = seed or {}
        self._last_emitted: Dict[str, str] = {
            field.name: seed.get(field.name, "") for field in fields
        }
        self.updates_received = 0
        self.updates_emitted = 0

    def update(self, field_name: str, new_value: str) -> FieldUpdate | None:
        self.updates_received += 1
        if self._last_emitted.get(field_name) == new_value:
            return None
        self._last_emitted[field_name] = new_value
        self.updates_emitted += 1
        return FieldUpdate(field_name=field_name, value=new_value)

    def last_emitted(self, field_name: str) -> str | None:
        return self._last_emitted.get(field_name)

    def get_metrics(self) -> Dict[str, Any]:
        """Get coalescing metrics for logging."""
        ratio = self.updates_emitted / self.updates_received if self.updates_received else 0
        return {
            "updates_received": self.updates_received,
            "updates_emitted": self.updates_emitted,
            "coalescing_ratio": round(ratio, 3),
        }
