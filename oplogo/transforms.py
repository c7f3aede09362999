"""Definition classes for transformations."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from oplogo.blocks import Block

from oplogo.common import BytesReadType

logger = logging.getLogger( __name__ )


class TransformResult( NamedTuple ):
    payload: bytes = b""
    end_offset: int = 0


class Transform:
    """Base class for defining transformations."""

    def export_data(
        self, buffer: BytesReadType, parent: Block | None = None
    ) -> TransformResult:
        """Perform a transform on a byte string.

        buffer
            Source byte string.

        parent
            Parent object of the source (to provide context for Refs).
        """
        raise NotImplementedError( f"{self}: export_data not implemented!" )

    def import_data(
        self, buffer: BytesReadType, parent: Block | None = None
    ) -> TransformResult:
        """Perform a reverse-transform on a byte string.

        buffer
            Source byte string.

        parent
            Parent object of the source (to provide context for Refs).
        """
        raise NotImplementedError( f"{self}: import_data not implemented!" )
