"""Unpack and repack operations for splash LOGO containers."""

from concurrent.futures import ThreadPoolExecutor, as_completed
import os
import sys
import tempfile
from typing import NamedTuple

from oplogo import common, utils
from oplogo import models as mdl
from oplogo.lib.containers.splash import HEADER_SIZE, SLOT_COUNT, SplashHeader, \
                                         SplashRecord, align_offset, decode_header, \
                                         encode_header
from oplogo.lib.images import base as img

import logging
logger = logging.getLogger( __name__ )


class SlotReadError( Exception ):
    def __init__( self, index, name, path, reason ):
        self.index = index
        self.name = name
        self.path = path
        self.reason = reason
        super().__init__( 'Slot {} [{}] ({}): {}'.format( index, name, path, reason ) )


class UnpackReport( object ):
    def __init__( self ):
        self.written = []
        self.skipped = []
        self.errors = []

    @property
    def ok( self ):
        return not self.errors

    def __repr__( self ):
        return '<UnpackReport: written={}, skipped={}, errors={}>'.format(
            len( self.written ), len( self.skipped ), len( self.errors )
        )


class SlotInfo( NamedTuple ):
    index: int
    offset: int
    width: int
    height: int
    payload_length: int
    format_marker: int
    metadata: str
    name: str


def slot_filename( index, header ):
    """Return the image file name used for a slot.

    Slots without a usable name fall back to slot_NN.png.
    """
    name = header.name
    if name is not None and (os.path.basename( name ) != name or name in ('.', '..')):
        logger.warning( 'Slot {} has unusable file name {!r}, ignoring'.format( index, name ) )
        name = None
    if name is None:
        name = 'slot_{:02d}'.format( index )
    return '{}.png'.format( name )


def _unpack_task( index, offset, blob, path ):
    try:
        record = SplashRecord( blob, path_hint='<SplashRecord@0x{:06x}>'.format( offset ) )
        img.save_image( record.image.get_image(), path )
    except Exception as e:
        return index, path, e
    return index, path, None


def unpack( source, header, output_dir, max_workers=None ):
    """Extract every non-void image in a container to a directory of PNG files.

    source
        Byte string or seekable binary file object containing the container.

    header
        Container SplashHeader, as returned by decode_header().

    output_dir
        Directory to write images to. Created if it doesn't exist.

    max_workers
        Number of threads to decode images with. Defaults to the CPU count.

    Slots which fail to load are recorded in the returned UnpackReport;
    the other slots are still extracted.
    """
    os.makedirs( output_dir, exist_ok=True )
    if max_workers is None:
        max_workers = min( 32, os.cpu_count() or 1 )

    report = UnpackReport()
    written = {}
    seen_offsets = set()
    claimed = {}
    with ThreadPoolExecutor( max_workers=max_workers ) as executor:
        futures = {}
        for index, offset in enumerate( header.offsets ):
            if offset in seen_offsets:
                logger.debug( 'Slot {} shares offset 0x{:06x} with an earlier slot, skipping'.format( index, offset ) )
                continue
            seen_offsets.add( offset )

            try:
                sub = decode_header( source, offset, validate=False )
            except mdl.ParseError as e:
                report.errors.append( SlotReadError( index, None, None, e ) )
                continue

            if sub.is_void:
                logger.info( 'Slot {} [{}] is void, skipping'.format( index, sub.name ) )
                report.skipped.append( index )
                continue

            path = os.path.join( output_dir, slot_filename( index, sub ) )
            if path in claimed:
                logger.warning( 'Slot {} [{}] would overwrite {} from slot {}, skipping'.format( index, sub.name, path, claimed[path] ) )
                report.skipped.append( index )
                continue
            claimed[path] = index

            size = HEADER_SIZE+sub.payload_length
            blob = common.read_at( source, offset, size )
            if len( blob ) != size:
                report.errors.append( SlotReadError(
                    index, sub.name, path,
                    'was expecting {} bytes of payload, only found {}'.format( sub.payload_length, max( len( blob )-HEADER_SIZE, 0 ) )
                ) )
                continue

            logger.debug( 'Slot {} [{}]: offset=0x{:06x}, {}x{}, {} bytes'.format( index, sub.name, offset, sub.width, sub.height, sub.payload_length ) )
            futures[executor.submit( _unpack_task, index, offset, blob, path )] = sub.name

        for future in as_completed( futures ):
            index, path, error = future.result()
            if error:
                report.errors.append( SlotReadError( index, futures[future], path, error ) )
            else:
                logger.info( 'Slot {} [{}] written to {}'.format( index, futures[future], path ) )
                written[index] = path

    report.written = [written[i] for i in sorted( written )]
    report.errors.sort( key=lambda e: e.index )
    for error in report.errors:
        logger.warning( '{}'.format( error ) )
    return report


def _place( output, offset, region ):
    if len( output ) < offset:
        output.extend( b'\x00'*(offset-len( output )) )
    output[offset:offset+len( region )] = region


def write_atomic( path, data ):
    """Write data to path, replacing any existing file only once the write succeeds."""
    target_dir = os.path.dirname( os.path.abspath( path ) )
    fd, temp_path = tempfile.mkstemp( prefix='.oplogo_', suffix='.tmp', dir=target_dir )
    try:
        with os.fdopen( fd, 'wb' ) as out:
            out.write( data )
        umask = os.umask( 0 )
        os.umask( umask )
        os.chmod( temp_path, 0o666 & ~umask )
        os.replace( temp_path, path )
    except BaseException:
        try:
            os.remove( temp_path )
        except FileNotFoundError:
            pass
        raise


def repack( source, header, picture_dir, output_path, keep_missing=False ):
    """Rebuild a container from a directory of PNG files.

    source
        Byte string or seekable binary file object containing the original container.

    header
        Container SplashHeader, as returned by decode_header().

    picture_dir
        Directory containing the replacement images, named as by unpack().

    output_path
        Path of the new container. Only replaced once the whole container
        has been built and written.

    keep_missing
        Carry over the original image data for slots with no replacement
        image, instead of raising ImageLoadError.

    Returns the new container SplashHeader.
    """
    new_header = SplashHeader( header )
    output = bytearray()
    running = 0
    first = None

    for index in range( SLOT_COUNT ):
        sub = decode_header( source, header.offsets[index], validate=False )
        offset = 0 if index == 0 else align_offset( running )
        new_header.offsets[index] = offset

        if sub.is_void:
            logger.info( 'Slot {} [{}] is void, keeping header'.format( index, sub.name ) )
            region = encode_header( sub )
            result = sub
        else:
            path = os.path.join( picture_dir, slot_filename( index, sub ) )
            try:
                image = img.load_image( path )
            except img.ImageLoadError:
                if not keep_missing or os.path.exists( path ):
                    raise
                logger.warning( 'Slot {} [{}]: {} not found, keeping original image'.format( index, sub.name, path ) )
                size = HEADER_SIZE+sub.payload_length
                region = common.read_at( source, header.offsets[index], size )
                if len( region ) != size:
                    raise mdl.ParseError( 'Slot {} [{}]: was expecting {} bytes of payload, only found {}'.format( index, sub.name, sub.payload_length, max( len( region )-HEADER_SIZE, 0 ) ) )
                result = sub
            else:
                record = SplashRecord( sub )
                record.image.set_image( image )
                region = record.export_data()
                result = record
                logger.info( 'Slot {} [{}] packed from {}'.format( index, sub.name, path ) )

        logger.debug( 'Slot {}: offset=0x{:06x}, {} bytes'.format( index, offset, len( region ) ) )
        _place( output, offset, region )
        running = offset+len( region )
        if index == 0:
            first = result

    new_header.width = first.width
    new_header.height = first.height
    new_header.payload_length = first.payload_length
    _place( output, 0, encode_header( new_header ) )
    _place( output, align_offset( len( output ) ), b'' )

    write_atomic( output_path, output )
    logger.info( 'Wrote {} bytes to {}'.format( len( output ), output_path ) )
    return new_header


def iter_info( source, header ):
    """Yield a SlotInfo summary for each entry of the container's offset table."""
    for index, offset in enumerate( header.offsets ):
        sub = decode_header( source, offset, validate=False )
        yield SlotInfo(
            index, offset, sub.width, sub.height, sub.payload_length,
            sub.format_marker, utils.printable( sub.metadata ),
            sub.name if sub.name is not None else 'None',
        )


def dump_info( source, header, file=None ):
    """Print a table describing each entry of the container's offset table."""
    if file is None:
        file = sys.stdout
    print( 'INDEX\tOFFSET\tWIDTH\tHEIGHT\tLENGTH\tSPECIAL\tMETADATA:[NAME]', file=file )
    for info in iter_info( source, header ):
        print( '{:5d}\t{:06X}\t{:5d}\t{:6d}\t{:6d}\t{:7d}\t{}:[{}]'.format( *info ), file=file )
