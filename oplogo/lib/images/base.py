from oplogo import models as mdl

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

import logging
logger = logging.getLogger( __name__ )


class ImageLoadError( Exception ):
    pass


class Image( mdl.View ):
    def __init__( self, parent, source, width, height ):
        super().__init__( parent )
        self._source = source
        self._width = width
        self._height = height

    source = mdl.view_property( '_source' )
    width = mdl.view_property( '_width' )
    height = mdl.view_property( '_height' )

    def __repr__( self ):
        return '<{}: {}x{}>'.format( self.__class__.__name__, self.width, self.height )


class BGRImage( Image ):
    """Raw 24-bit image, stored as rows of B-G-R byte triplets with no padding."""

    @property
    def raw_size( self ):
        return self.width*self.height*3

    def get_image( self ):
        """Return the pixel data as an opaque RGBA Pillow image."""
        source = self.source
        if len( source ) != self.raw_size:
            raise mdl.ParseError( 'Image {} has {} bytes of pixel data, was expecting {}'.format( self, len( source ), self.raw_size ) )
        im = PILImage.frombytes( 'RGB', (self.width, self.height), bytes( source ), 'raw', 'BGR' )
        return im.convert( 'RGBA' )

    def set_image( self, image, change_dims=True ):
        """Replace the pixel data with the contents of a Pillow image.

        image
            Pillow image to import. Any alpha channel is dropped.

        change_dims
            Update the width and height to match the image. If False, an
            image of a different size is rejected.
        """
        if not isinstance( image, PILImage.Image ):
            raise TypeError( 'Image must be a PILImage object' )
        if change_dims:
            if self.width != image.width:
                logger.info( 'Changing width from {} to {}'.format( self.width, image.width ) )
                self.width = image.width
            if self.height != image.height:
                logger.info( 'Changing height from {} to {}'.format( self.height, image.height ) )
                self.height = image.height
        elif (self.width, self.height) != image.size:
            raise AttributeError( 'Image is a different size, please enable change_dims if you want to resize the image' )

        self.source = image.convert( 'RGB' ).tobytes( 'raw', 'BGR' )


def load_image( path ):
    """Open and fully decode an image file from disk.

    Raises ImageLoadError if the file is missing or can't be decoded.
    """
    try:
        with PILImage.open( path ) as image:
            image.load()
            return image.copy()
    except FileNotFoundError as e:
        raise ImageLoadError( 'Cannot find image file {}'.format( path ) ) from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageLoadError( 'Cannot decode image file {}: {}'.format( path, e ) ) from e


def save_image( image, path ):
    image.save( path, format='PNG' )
