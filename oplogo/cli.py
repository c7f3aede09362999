from oplogo import common, utils
from oplogo import models as mdl
from oplogo import pipeline
from oplogo.lib.containers import splash
from oplogo.lib.images import base as img
from oplogo.version import __version__

import argparse
import sys
import logging
logger = logging.getLogger( __name__ )

auto_int = lambda s: int( s, base=0 )

ARGS_COMMON = {
    ('--input', '-i'): dict(
        metavar='FILE',
        dest='input',
        required=True,
        help='LOGO container to read from',
    ),
    ('--pic', '-p'): dict(
        metavar='DIR',
        dest='pic',
        default='pic',
        help='Directory to extract images to, or read replacement images from (default: pic)',
    ),
    ('--strict',): dict(
        dest='strict',
        action='store_true',
        help='Refuse containers with an unknown signature',
    ),
    ('--verbose', '-v'): dict(
        dest='verbose',
        action='count',
        default=0,
        help='Log progress; repeat for more detail',
    ),
    ('--version', '-V'): dict(
        action='version',
        version='%(prog)s {}'.format( __version__ )
    ),
}

ARGS_MODE = {
    ('--unpack', '-x'): dict(
        dest='unpack',
        action='store_true',
        help='Extract the images in the container to the picture directory',
    ),
    ('--read-info', '-r'): dict(
        dest='read_info',
        action='store_true',
        help='Print the offset table of the container and exit',
    ),
}

ARGS_UNPACK = {
    ('--jobs', '-j'): dict(
        metavar='INT',
        dest='jobs',
        type=auto_int,
        default=None,
        help='Number of images to decode in parallel (default: CPU count)',
    ),
}

ARGS_REPACK = {
    ('--output', '-o'): dict(
        metavar='FILE',
        dest='output',
        default='new-logo.img',
        help='LOGO container to write (default: new-logo.img)',
    ),
    ('--keep-missing',): dict(
        dest='keep_missing',
        action='store_true',
        help='Keep the original image for slots with no replacement image',
    ),
}


def get_parser( args, **kwargs ):
    parser = argparse.ArgumentParser( **kwargs )
    for arg, spec in args.items():
        if isinstance( arg, tuple ):
            parser.add_argument( *arg, **spec )
        else:
            parser.add_argument( arg, **spec )
    return parser


def oplogo_parser():
    return get_parser(
        {**ARGS_COMMON, **ARGS_MODE, **ARGS_UNPACK, **ARGS_REPACK},
        description='Unpack and repack splash LOGO containers.',
        epilog='By default the container is rebuilt using the images in the picture directory.',
    )


def main( argv=None ):
    parser = oplogo_parser()
    raw_args = parser.parse_args( argv )

    if raw_args.verbose:
        utils.enable_logging( 'DEBUG' if raw_args.verbose > 1 else 'INFO' )
    else:
        utils.enable_logging( 'WARNING' )

    try:
        with open( raw_args.input, 'rb' ) as src:
            with common.read( src ) as source:
                header = splash.decode_header( source, 0, strict=raw_args.strict )
                if raw_args.read_info:
                    pipeline.dump_info( source, header )
                elif raw_args.unpack:
                    report = pipeline.unpack( source, header, raw_args.pic, max_workers=raw_args.jobs )
                    if not report.ok:
                        logger.error( '{} of {} images could not be extracted'.format( len( report.errors ), len( report.errors )+len( report.written ) ) )
                        return 1
                else:
                    pipeline.repack( source, header, raw_args.pic, raw_args.output, keep_missing=raw_args.keep_missing )
    except (splash.FormatError, img.ImageLoadError, mdl.ParseError, mdl.FieldValidationError, OSError) as e:
        logger.error( '{}'.format( e ) )
        return 2
    return 0


def oplogo():
    sys.exit( main() )
