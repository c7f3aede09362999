"""General utility functions useful for reverse engineering."""

import logging
logger = logging.getLogger( __name__ )

from oplogo import common


def enable_logging( level='WARNING' ):
    """Enable sending logs to stderr. Useful for shell sessions.

    level
        Logging threshold, as defined in the logging module of the Python
        standard library. Defaults to 'WARNING'.
    """
    log = logging.getLogger( 'oplogo' )
    log.setLevel( level )
    out = logging.StreamHandler()
    out.setLevel( level )
    form = logging.Formatter( '[%(levelname)s] %(name)s - %(message)s' )
    out.setFormatter( form )
    log.addHandler( out )


def printable( source, limit=None ):
    """Return the text at the start of a byte string, for display purposes.

    source
        Byte string to summarise. Stops at the first null byte.

    limit
        Maximum number of characters to return. Defaults to no limit.

    Characters outside of printable ASCII are replaced with '.'.
    """
    assert common.is_bytes( source )
    text = bytes( source ).split( b'\x00', 1 )[0]
    if limit is not None:
        text = text[:limit]
    return ''.join( chr( c ) if 0x20 <= c < 0x7f else '.' for c in text )
