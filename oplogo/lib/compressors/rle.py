import re
import logging
logger = logging.getLogger( __name__ )

from oplogo import models as mdl

RUN_PATTERN = re.compile( rb'(.)\1*', re.DOTALL )
MAX_RUN = 0xff


class RLECompressor( mdl.Transform ):
    """Run-length codec made of (value, count) byte pairs.

    Each pair expands to count copies of value. Counts never exceed 255;
    longer runs are split across several pairs.
    """

    def import_data( self, buffer, parent=None ):
        out = bytearray()
        end = len( buffer ) - (len( buffer ) % 2)
        if end != len( buffer ):
            logger.debug( 'Discarding dangling byte at offset 0x{:x}'.format( end ) )
        for i in range( 0, end, 2 ):
            out.extend( bytes( buffer[i:i+1] )*buffer[i+1] )

        return mdl.TransformResult( payload=bytes( out ), end_offset=end )

    def export_data( self, buffer, parent=None ):
        out = bytearray()
        for match in RUN_PATTERN.finditer( buffer ):
            value = match.group( 1 )[0]
            full, rest = divmod( match.end()-match.start(), MAX_RUN )
            out.extend( bytes( (value, MAX_RUN) )*full )
            if rest:
                out.append( value )
                out.append( rest )

        return mdl.TransformResult( payload=bytes( out ), end_offset=len( buffer ) )


def rle_decode( data ):
    """Expand a run-length encoded byte string."""
    return RLECompressor().import_data( data ).payload


def rle_encode( data ):
    """Run-length encode a byte string."""
    return RLECompressor().export_data( data ).payload
