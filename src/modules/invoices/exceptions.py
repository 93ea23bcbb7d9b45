"""Invoice exceptions."""

from __future__ import annotations

from modules.core.exceptions import RenderingError


class InvoiceRenderingError(RenderingError):
    """Text could not be measured or a row cannot fit on any page."""
