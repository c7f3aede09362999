"""File format classes for splash LOGO containers.

A container starts with a 4096 byte SplashHeader, which carries a table of
84 offsets. Each offset points at a sub-image record: another SplashHeader,
followed by payload_length bytes of run-length encoded B-G-R pixel data.
Records start on 4096 byte boundaries, except the first which shares its
position with the container header.
"""

from oplogo import common
from oplogo import models as mdl
from oplogo.lib.compressors.rle import RLECompressor
from oplogo.lib.images import base as img

import logging
logger = logging.getLogger( __name__ )

HEADER_SIZE = 0x1000
SLOT_COUNT = 84
ALIGNMENT = 0x1000
NAME_SIZE = 0x40
METADATA_SIZE = 0xe40
SPLASH_MAGIC = b'SPLASH!!'
FORMAT_MARKER = 1


class FormatError( Exception ):
    pass


def align_offset( offset ):
    """Round an offset up to the next 4096 byte boundary.

    Offsets already on a boundary are returned unchanged.
    """
    if offset < 0:
        raise ValueError( 'Offset can\'t be a negative number!' )
    if offset % ALIGNMENT == 0:
        return offset
    return ((offset >> 12) + 1) << 12


class SplashHeader( mdl.Block ):
    signature =         mdl.Bytes( 0x00, length=0x08, default=SPLASH_MAGIC )
    reserved =          mdl.Bytes( 0x08, length=0x18 )
    width =             mdl.UInt32_LE( 0x20 )
    height =            mdl.UInt32_LE( 0x24 )
    payload_length =    mdl.UInt32_LE( 0x28 )
    format_marker =     mdl.UInt32_LE( 0x2c, default=FORMAT_MARKER )
    offsets =           mdl.UInt32_LE( 0x30, count=SLOT_COUNT )
    name_raw =          mdl.Bytes( 0x180, length=NAME_SIZE )
    metadata =          mdl.Bytes( 0x1c0, length=METADATA_SIZE )

    _repr_values = ['name', 'width', 'height', 'payload_length']

    @property
    def name( self ):
        """Name of the image, or None if unset."""
        raw = self.name_raw.split( b'\x00', 1 )[0]
        if not raw:
            return None
        return raw.decode( 'ascii', errors='replace' )

    @name.setter
    def name( self, value ):
        raw = b'' if value is None else value.encode( 'ascii' )
        if len( raw ) >= NAME_SIZE:
            raise mdl.FieldValidationError( 'Name {} is longer than {} characters'.format( value, NAME_SIZE-1 ) )
        self.name_raw = raw.ljust( NAME_SIZE, b'\x00' )

    @property
    def is_void( self ):
        return self.payload_length == 0

    @property
    def raw_size( self ):
        return self.width*self.height*3

    def check_container( self, strict=False ):
        """Throw a FormatError if this isn't a usable container header.

        strict
            Also reject signatures other than SPLASH_MAGIC. By default a
            mismatch only logs a warning.
        """
        if self.format_marker != FORMAT_MARKER:
            raise FormatError( '{}: format marker is {}, was expecting {}'.format( self.get_path(), self.format_marker, FORMAT_MARKER ) )
        if self.offsets[0] != 0:
            raise FormatError( '{}: first offset is 0x{:x}, was expecting 0'.format( self.get_path(), self.offsets[0] ) )
        if self.signature != SPLASH_MAGIC:
            if strict:
                raise FormatError( '{}: unknown signature {}'.format( self.get_path(), self.signature ) )
            logger.warning( '{}: unknown signature {}, continuing anyway'.format( self.get_path(), self.signature ) )


class SplashRecord( SplashHeader ):
    """A SplashHeader followed by its image payload."""

    pixels = mdl.Bytes( HEADER_SIZE, length=mdl.Ref( 'payload_length' ), transform=RLECompressor() )

    def __init__( self, *args, **kwargs ):
        self.image = img.BGRImage( self, mdl.Ref( 'pixels' ), mdl.Ref( 'width' ), mdl.Ref( 'height' ) )
        super().__init__( *args, **kwargs )


def decode_header( source, offset=0, validate=None, strict=False ):
    """Read a SplashHeader from a container.

    source
        Byte string or seekable binary file object.

    offset
        Position of the header within source.

    validate
        Check the header is a usable container header. Defaults to True
        for the header at offset 0 and False otherwise.

    strict
        Reject unknown signatures when validating.
    """
    data = common.read_at( source, offset, HEADER_SIZE )
    header = SplashHeader( data, path_hint='<SplashHeader@0x{:06x}>'.format( offset ) )
    if validate is None:
        validate = (offset == 0)
    if validate:
        header.check_container( strict=strict )
    return header


def encode_header( header ):
    """Return the 4096 byte representation of a SplashHeader."""
    if type( header ) is not SplashHeader:
        header = SplashHeader( header )
    return bytes( header.export_data() )
