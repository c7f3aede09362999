import contextlib
import io
import os
import random
import stat
import tempfile
import unittest
from unittest import mock

from PIL import Image as PILImage

from oplogo import cli, pipeline
from oplogo import models as mdl
from oplogo.lib.compressors.rle import RLECompressor, rle_decode, rle_encode
from oplogo.lib.containers import splash
from oplogo.lib.images import base as img


def make_slot( name, width=0, height=0, pixels=b'', metadata=b'' ):
    record = splash.SplashRecord()
    if name is not None:
        record.name = name
    record.width = width
    record.height = height
    record.metadata = metadata.ljust( splash.METADATA_SIZE, b'\x00' )
    record.pixels = pixels
    return bytes( record.export_data() )


def make_container( slots ):
    output = bytearray()
    offsets = []
    void_offset = None
    for blob in slots:
        offset = splash.align_offset( len( output ) )
        output.extend( b'\x00'*(offset-len( output )) )
        offsets.append( offset )
        output.extend( blob )
        if void_offset is None and blob[0x28:0x2c] == b'\x00\x00\x00\x00':
            void_offset = offset
    if void_offset is None:
        void_offset = splash.align_offset( len( output ) )
        output.extend( b'\x00'*(void_offset-len( output )) )
        output.extend( make_slot( None ) )
    offsets.extend( [void_offset]*(splash.SLOT_COUNT-len( offsets )) )

    header = splash.SplashHeader( bytes( output[:splash.HEADER_SIZE] ) )
    header.offsets = offsets
    output[:splash.HEADER_SIZE] = splash.encode_header( header )
    return bytes( output )


def read_record( data, offset ):
    sub = splash.decode_header( data, offset, validate=False )
    return splash.SplashRecord( data[offset:offset+splash.HEADER_SIZE+sub.payload_length] )


def gradient( width, height, seed ):
    return bytes( (x*7+y*3+seed) % 256 for y in range( height ) for x in range( width*3 ) )


class TestBlock( unittest.TestCase ):
    def test_fields( self ):
        class Test( mdl.Block ):
            value = mdl.UInt32_LE( 0x00 )
            pair = mdl.UInt32_LE( 0x04, count=2 )
            tag = mdl.Bytes( 0x0c, length=2 )

        payload = b'\x78\x56\x34\x12\x01\x00\x00\x00\x02\x00\x00\x00ab'
        test = Test( payload )
        self.assertEqual( test.value, 0x12345678 )
        self.assertEqual( test.pair, [1, 2] )
        self.assertEqual( test.tag, b'ab' )
        self.assertEqual( test.get_size(), 14 )
        self.assertEqual( test.export_data(), payload )

        test.value = 1 << 32
        with self.assertRaises( mdl.FieldValidationError ):
            test.export_data()

        test.value = 0
        test.pair = [1, 2, 3]
        with self.assertRaises( mdl.FieldValidationError ):
            test.export_data()

        test.pair = [1, 2]
        test.tag = b'abc'
        with self.assertRaises( mdl.FieldValidationError ):
            test.export_data()

    def test_defaults( self ):
        class Test( mdl.Block ):
            value = mdl.UInt32_LE( 0x00, default=3 )
            tag = mdl.Bytes( 0x04, length=4 )

        test = Test()
        self.assertEqual( test.export_data(), b'\x03\x00\x00\x00\x00\x00\x00\x00' )

        test = Test( {'tag': b'abcd'} )
        self.assertEqual( test.value, 3 )
        self.assertEqual( test.export_data(), b'\x03\x00\x00\x00abcd' )

    def test_short_buffer( self ):
        class Test( mdl.Block ):
            value = mdl.UInt32_LE( 0x00 )

        with self.assertRaises( mdl.ParseError ):
            Test( b'\x01\x02' )

    def test_ref_transform( self ):
        class Test( mdl.Block ):
            size = mdl.UInt32_LE( 0x00 )
            data = mdl.Bytes( 0x04, length=mdl.Ref( 'size' ), transform=RLECompressor() )

        test = Test( b'\x04\x00\x00\x00\x41\x03\x42\x01' )
        self.assertEqual( test.data, b'AAAB' )

        test.data = b'CCCCCC'
        self.assertEqual( test.export_data(), b'\x02\x00\x00\x00\x43\x06' )
        self.assertEqual( test.size, 2 )

    def test_ref( self ):
        class Test( mdl.Block ):
            size = mdl.UInt32_LE( 0x00 )

        ref = mdl.Ref( 'size' )
        self.assertEqual( repr( ref ), '<Ref: size>' )
        test = Test( b'\x05\x00\x00\x00' )
        self.assertEqual( ref.get( test ), 5 )
        ref.set( test, 9 )
        self.assertEqual( test.size, 9 )

        with self.assertRaises( TypeError ):
            mdl.Ref( 'size', allow_write=False )
        with self.assertRaises( TypeError ):
            Test( b'\x05\x00\x00\x00', preload_attrs={} )
        with self.assertRaises( TypeError ):
            mdl.UInt32_LE( 0x00, range=range( 4 ) )


class TestRLE( unittest.TestCase ):
    def test_decode( self ):
        self.assertEqual( rle_decode( b'\x00\x03\x01\x02' ), b'\x00\x00\x00\x01\x01' )
        self.assertEqual( rle_decode( b'\x05\x00\x06\x01' ), b'\x06' )
        self.assertEqual( rle_decode( b'' ), b'' )

    def test_decode_odd_length( self ):
        result = RLECompressor().import_data( b'\x07\x02\x09' )
        self.assertEqual( result.payload, b'\x07\x07' )
        self.assertEqual( result.end_offset, 2 )

    def test_encode( self ):
        self.assertEqual( rle_encode( b'' ), b'' )
        self.assertEqual( rle_encode( b'\x01\x01\x02\x01' ), b'\x01\x02\x02\x01\x01\x01' )
        self.assertEqual( rle_encode( b'\x0a' ), b'\x0a\x01' )

    def test_run_overflow( self ):
        self.assertEqual( rle_encode( b'\xaa'*255 ), b'\xaa\xff' )
        self.assertEqual( rle_encode( b'\xaa'*256 ), b'\xaa\xff\xaa\x01' )
        self.assertEqual( rle_encode( b'\x00'*36000 ), b'\x00\xff'*141 + b'\x00\x2d' )

    def test_round_trip( self ):
        rng = random.Random( 0x1000 )
        samples = [
            b'',
            b'\x00',
            b'\x0a\x00',
            bytes( range( 256 ) ),
            b'\xff'*1000 + b'\x00'*3 + b'\xff'*510,
            bytes( rng.choice( b'\x00\x01\x02' ) for i in range( 4000 ) ),
            bytes( rng.randrange( 256 ) for i in range( 4000 ) ),
        ]
        for sample in samples:
            encoded = rle_encode( sample )
            self.assertEqual( len( encoded ) % 2, 0 )
            counts = encoded[1::2]
            self.assertTrue( all( 1 <= c <= 255 for c in counts ) )
            self.assertEqual( rle_decode( encoded ), sample )


class TestAlign( unittest.TestCase ):
    def test_align( self ):
        self.assertEqual( splash.align_offset( 0 ), 0 )
        self.assertEqual( splash.align_offset( 1 ), 0x1000 )
        self.assertEqual( splash.align_offset( 0x1000 ), 0x1000 )
        self.assertEqual( splash.align_offset( 0x1001 ), 0x2000 )
        self.assertEqual( splash.align_offset( 0x1fff ), 0x2000 )

    def test_idempotent( self ):
        for offset in (0, 1, 4095, 4096, 4097, 123456, 0xfffff000, 0xfffff001):
            aligned = splash.align_offset( offset )
            self.assertEqual( aligned % splash.ALIGNMENT, 0 )
            self.assertGreaterEqual( aligned, offset )
            self.assertLess( aligned-offset, splash.ALIGNMENT )
            self.assertEqual( splash.align_offset( aligned ), aligned )

    def test_negative( self ):
        with self.assertRaises( ValueError ):
            splash.align_offset( -1 )


class TestHeader( unittest.TestCase ):
    def make_header( self ):
        header = splash.SplashHeader()
        header.width = 200
        header.height = 60
        header.payload_length = 36
        header.name = 'boot'
        header.reserved = bytes( range( 0x18 ) )
        header.metadata = b'meta'.ljust( splash.METADATA_SIZE, b'\x01' )
        header.offsets = [i*0x1000 for i in range( splash.SLOT_COUNT )]
        return header

    def test_layout( self ):
        data = splash.encode_header( self.make_header() )
        self.assertEqual( len( data ), splash.HEADER_SIZE )
        self.assertEqual( data[0x00:0x08], splash.SPLASH_MAGIC )
        self.assertEqual( data[0x08:0x20], bytes( range( 0x18 ) ) )
        self.assertEqual( data[0x20:0x24], b'\xc8\x00\x00\x00' )
        self.assertEqual( data[0x24:0x28], b'\x3c\x00\x00\x00' )
        self.assertEqual( data[0x28:0x2c], b'\x24\x00\x00\x00' )
        self.assertEqual( data[0x2c:0x30], b'\x01\x00\x00\x00' )
        self.assertEqual( data[0x34:0x38], b'\x00\x10\x00\x00' )
        self.assertEqual( data[0x17c:0x180], (83*0x1000).to_bytes( 4, 'little' ) )
        self.assertEqual( data[0x180:0x185], b'boot\x00' )
        self.assertEqual( data[0x1c0:0x1c4], b'meta' )
        self.assertEqual( data[-1:], b'\x01' )

    def test_round_trip( self ):
        header = self.make_header()
        data = splash.encode_header( header )
        self.assertEqual( splash.decode_header( data ), header )
        self.assertEqual( splash.decode_header( io.BytesIO( data ) ), header )
        self.assertEqual( splash.encode_header( splash.decode_header( data ) ), data )

    def test_record_header( self ):
        blob = make_slot( 'logo', 2, 1, b'\x01\x02\x03\x04\x05\x06' )
        record = splash.SplashRecord( blob )
        self.assertEqual( record.payload_length, 12 )
        self.assertEqual( len( splash.encode_header( record ) ), splash.HEADER_SIZE )
        self.assertEqual( splash.encode_header( record ), blob[:splash.HEADER_SIZE] )

    def test_validation( self ):
        header = self.make_header()
        header.format_marker = 2
        with self.assertRaises( splash.FormatError ):
            splash.decode_header( splash.encode_header( header ) )

        header = self.make_header()
        header.offsets[0] = 0x1000
        with self.assertRaises( splash.FormatError ):
            splash.decode_header( splash.encode_header( header ) )

        # sub-headers aren't validated
        data = b'\x00'*splash.HEADER_SIZE + splash.encode_header( header )
        self.assertEqual( splash.decode_header( data, splash.HEADER_SIZE ), header )
        with self.assertRaises( splash.FormatError ):
            splash.decode_header( data, splash.HEADER_SIZE, validate=True )

    def test_signature( self ):
        header = self.make_header()
        header.signature = b'OTHERSIG'
        data = splash.encode_header( header )
        with self.assertLogs( 'oplogo.lib.containers.splash', level='WARNING' ):
            self.assertEqual( splash.decode_header( data ), header )
        with self.assertRaises( splash.FormatError ):
            splash.decode_header( data, strict=True )

    def test_short_read( self ):
        with self.assertRaises( mdl.ParseError ):
            splash.decode_header( b'\x00'*100 )
        with self.assertRaises( mdl.ParseError ):
            splash.decode_header( b'\x00'*0x2000, 0x1800 )

    def test_name( self ):
        header = splash.SplashHeader()
        self.assertIsNone( header.name )
        header.name_raw = b'abc\x00def'.ljust( splash.NAME_SIZE, b'\x00' )
        self.assertEqual( header.name, 'abc' )
        header.name = 'x'*(splash.NAME_SIZE-1)
        self.assertEqual( header.name, 'x'*(splash.NAME_SIZE-1) )
        with self.assertRaises( mdl.FieldValidationError ):
            header.name = 'x'*splash.NAME_SIZE


class TestImage( unittest.TestCase ):
    def test_bgr_order( self ):
        record = splash.SplashRecord( make_slot( 'px', 2, 1, b'\x01\x02\x03\x0a\x0b\x0c' ) )
        image = record.image.get_image()
        self.assertEqual( image.mode, 'RGBA' )
        self.assertEqual( image.size, (2, 1) )
        self.assertEqual( image.getpixel( (0, 0) ), (3, 2, 1, 255) )
        self.assertEqual( image.getpixel( (1, 0) ), (12, 11, 10, 255) )

    def test_set_image( self ):
        record = splash.SplashRecord( make_slot( 'px', 1, 1, b'\x00\x00\x00' ) )
        image = PILImage.new( 'RGBA', (3, 2), (30, 20, 10, 0) )
        record.image.set_image( image )
        self.assertEqual( (record.width, record.height), (3, 2) )
        self.assertEqual( record.pixels, b'\x0a\x14\x1e'*6 )
        record.export_data()
        self.assertEqual( record.payload_length, 36 )

        with self.assertRaises( AttributeError ):
            record.image.set_image( PILImage.new( 'RGB', (1, 1) ), change_dims=False )

    def test_size_mismatch( self ):
        record = splash.SplashRecord( make_slot( 'px', 2, 2, b'\x00'*6 ) )
        with self.assertRaises( mdl.ParseError ):
            record.image.get_image()


class TestPipeline( unittest.TestCase ):
    def setUp( self ):
        self.tempdir = tempfile.TemporaryDirectory()
        self.addCleanup( self.tempdir.cleanup )
        self.pic_dir = os.path.join( self.tempdir.name, 'pic' )
        self.output = os.path.join( self.tempdir.name, 'new-logo.img' )
        self.pixels = [
            gradient( 16, 8, 0 ),
            None,
            b'\x10\x20\x30'*(40*30),
            gradient( 33, 17, 5 ),
        ]
        self.data = make_container( [
            make_slot( 'boot', 16, 8, self.pixels[0], metadata=b'mode=0' ),
            make_slot( 'void', metadata=b'unused' ),
            make_slot( 'charger', 40, 30, self.pixels[2] ),
            make_slot( None, 33, 17, self.pixels[3] ),
        ] )
        self.header = splash.decode_header( self.data )

    def test_black_splash( self ):
        payload = b'\x00\xff'*141 + b'\x00\x2d'
        blob = make_slot( 'logo', 200, 60, b'\x00'*36000 )
        self.assertEqual( blob[splash.HEADER_SIZE:], payload )
        data = make_container( [blob] )
        header = splash.decode_header( data )

        report = pipeline.unpack( data, header, self.pic_dir )
        self.assertTrue( report.ok )
        self.assertEqual( report.written, [os.path.join( self.pic_dir, 'logo.png' )] )
        with PILImage.open( report.written[0] ) as image:
            self.assertEqual( image.size, (200, 60) )
            self.assertEqual( image.mode, 'RGBA' )
            self.assertEqual( image.getextrema(), ((0, 0), (0, 0), (0, 0), (255, 255)) )

        new_header = pipeline.repack( data, header, self.pic_dir, self.output )
        with open( self.output, 'rb' ) as f:
            result = f.read()
        self.assertEqual( splash.decode_header( result ), new_header )
        self.assertEqual( (new_header.width, new_header.height), (200, 60) )
        self.assertEqual( new_header.payload_length, len( payload ) )
        self.assertEqual( read_record( result, 0 ).pixels, b'\x00'*36000 )

    def test_round_trip( self ):
        report = pipeline.unpack( self.data, self.header, self.pic_dir )
        self.assertTrue( report.ok )
        self.assertEqual( report.skipped, [1] )
        self.assertEqual( sorted( os.listdir( self.pic_dir ) ), ['boot.png', 'charger.png', 'slot_03.png'] )

        new_header = pipeline.repack( self.data, self.header, self.pic_dir, self.output )
        with open( self.output, 'rb' ) as f:
            result = f.read()
        self.assertEqual( len( result ) % splash.ALIGNMENT, 0 )
        self.assertEqual( new_header.offsets[0], 0 )
        self.assertTrue( all( o % splash.ALIGNMENT == 0 for o in new_header.offsets ) )
        self.assertEqual( new_header.offsets, sorted( new_header.offsets ) )
        self.assertEqual( (new_header.width, new_header.height), (16, 8) )
        self.assertEqual( new_header.metadata, self.header.metadata )

        for index in (0, 2, 3):
            record = read_record( result, new_header.offsets[index] )
            self.assertEqual( record.pixels, self.pixels[index] )

        void = splash.decode_header( result, new_header.offsets[1], validate=False )
        original = splash.decode_header( self.data, self.header.offsets[1], validate=False )
        self.assertEqual( void, original )
        self.assertEqual( void.name, 'void' )
        self.assertEqual( void.metadata[:6], b'unused' )

    def test_round_trip_stream( self ):
        source = io.BytesIO( self.data )
        header = splash.decode_header( source )
        self.assertTrue( pipeline.unpack( source, header, self.pic_dir, max_workers=1 ).ok )
        pipeline.repack( source, header, self.pic_dir, self.output )
        with open( self.output, 'rb' ) as f:
            result = f.read()
        new_header = splash.decode_header( result )
        self.assertEqual( read_record( result, new_header.offsets[2] ).pixels, self.pixels[2] )

    def test_replaced_image( self ):
        pipeline.unpack( self.data, self.header, self.pic_dir )
        PILImage.new( 'RGB', (64, 48), (255, 0, 0) ).save( os.path.join( self.pic_dir, 'boot.png' ) )

        new_header = pipeline.repack( self.data, self.header, self.pic_dir, self.output )
        with open( self.output, 'rb' ) as f:
            result = f.read()
        record = read_record( result, 0 )
        self.assertEqual( (record.width, record.height), (64, 48) )
        self.assertEqual( record.pixels, b'\x00\x00\xff'*(64*48) )
        self.assertEqual( (new_header.width, new_header.height), (64, 48) )
        self.assertEqual( new_header.payload_length, record.payload_length )
        self.assertEqual( read_record( result, new_header.offsets[3] ).pixels, self.pixels[3] )

    def test_missing_image( self ):
        pipeline.unpack( self.data, self.header, self.pic_dir )
        os.remove( os.path.join( self.pic_dir, 'charger.png' ) )

        with self.assertRaises( img.ImageLoadError ):
            pipeline.repack( self.data, self.header, self.pic_dir, self.output )
        self.assertFalse( os.path.exists( self.output ) )
        self.assertEqual( sorted( os.listdir( self.tempdir.name ) ), ['pic'] )

    def test_missing_image_keeps_output( self ):
        with open( self.output, 'wb' ) as f:
            f.write( b'previous' )
        pipeline.unpack( self.data, self.header, self.pic_dir )
        os.remove( os.path.join( self.pic_dir, 'boot.png' ) )

        with self.assertRaises( img.ImageLoadError ):
            pipeline.repack( self.data, self.header, self.pic_dir, self.output )
        with open( self.output, 'rb' ) as f:
            self.assertEqual( f.read(), b'previous' )

    def test_keep_missing( self ):
        pipeline.unpack( self.data, self.header, self.pic_dir )
        os.remove( os.path.join( self.pic_dir, 'charger.png' ) )

        new_header = pipeline.repack( self.data, self.header, self.pic_dir, self.output, keep_missing=True )
        with open( self.output, 'rb' ) as f:
            result = f.read()
        offset = self.header.offsets[2]
        original = read_record( self.data, offset )
        self.assertEqual( read_record( result, new_header.offsets[2] ), original )

    def test_corrupt_image( self ):
        pipeline.unpack( self.data, self.header, self.pic_dir )
        with open( os.path.join( self.pic_dir, 'charger.png' ), 'wb' ) as f:
            f.write( b'not a png' )

        with self.assertRaises( img.ImageLoadError ):
            pipeline.repack( self.data, self.header, self.pic_dir, self.output, keep_missing=True )
        self.assertFalse( os.path.exists( self.output ) )

    def test_short_payload( self ):
        data = self.data[:-10]
        with self.assertLogs( 'oplogo.pipeline', level='WARNING' ):
            report = pipeline.unpack( data, self.header, self.pic_dir )
        self.assertFalse( report.ok )
        self.assertEqual( [e.index for e in report.errors], [3] )
        self.assertEqual( report.written, [
            os.path.join( self.pic_dir, 'boot.png' ),
            os.path.join( self.pic_dir, 'charger.png' ),
        ] )

    def test_corrupt_payload( self ):
        # payload decodes to fewer bytes than width*height*3
        blob = bytearray( make_slot( 'bad', 4, 4, b'\x00'*48 ) )
        blob[0x20:0x24] = (8).to_bytes( 4, 'little' )
        data = make_container( [make_slot( 'good', 1, 1, b'\x01\x02\x03' ), bytes( blob )] )
        report = pipeline.unpack( data, splash.decode_header( data ), self.pic_dir )
        self.assertEqual( [e.index for e in report.errors], [1] )
        self.assertEqual( report.errors[0].name, 'bad' )
        self.assertEqual( report.written, [os.path.join( self.pic_dir, 'good.png' )] )

    def test_duplicate_names( self ):
        data = make_container( [
            make_slot( 'same', 1, 1, b'\x01\x02\x03' ),
            make_slot( 'same', 1, 1, b'\x04\x05\x06' ),
        ] )
        report = pipeline.unpack( data, splash.decode_header( data ), self.pic_dir )
        self.assertTrue( report.ok )
        self.assertEqual( report.written, [os.path.join( self.pic_dir, 'same.png' )] )
        with PILImage.open( report.written[0] ) as image:
            self.assertEqual( image.getpixel( (0, 0) ), (3, 2, 1, 255) )
        self.assertIn( 1, report.skipped )

    def test_failed_save( self ):
        save_image = img.save_image
        charger = os.path.join( self.pic_dir, 'charger.png' )

        def fail_charger( image, path ):
            if path == charger:
                raise RuntimeError( 'disk full' )
            save_image( image, path )

        with mock.patch.object( pipeline.img, 'save_image', side_effect=fail_charger ):
            with self.assertLogs( 'oplogo.pipeline', level='WARNING' ):
                report = pipeline.unpack( self.data, self.header, self.pic_dir )
        self.assertFalse( report.ok )
        self.assertEqual( [e.index for e in report.errors], [2] )
        self.assertEqual( report.errors[0].path, charger )
        self.assertIsInstance( report.errors[0].reason, RuntimeError )
        self.assertEqual( report.written, [
            os.path.join( self.pic_dir, 'boot.png' ),
            os.path.join( self.pic_dir, 'slot_03.png' ),
        ] )

    def test_output_mode( self ):
        old_umask = os.umask( 0o022 )
        self.addCleanup( os.umask, old_umask )
        pipeline.unpack( self.data, self.header, self.pic_dir )
        pipeline.repack( self.data, self.header, self.pic_dir, self.output )
        self.assertEqual( stat.S_IMODE( os.stat( self.output ).st_mode ), 0o644 )

    def test_dump_info( self ):
        out = io.StringIO()
        pipeline.dump_info( self.data, self.header, file=out )
        lines = out.getvalue().splitlines()
        self.assertEqual( len( lines ), splash.SLOT_COUNT+1 )
        self.assertEqual( lines[0], 'INDEX\tOFFSET\tWIDTH\tHEIGHT\tLENGTH\tSPECIAL\tMETADATA:[NAME]' )
        self.assertTrue( lines[1].endswith( 'mode=0:[boot]' ) )
        self.assertIn( '\t000000\t', lines[1] )
        self.assertTrue( lines[4].endswith( ':[None]' ) )

        infos = list( pipeline.iter_info( self.data, self.header ) )
        self.assertEqual( infos[1].name, 'void' )
        self.assertEqual( infos[1].payload_length, 0 )
        self.assertEqual( infos[2].offset, self.header.offsets[2] )
        self.assertEqual( (infos[2].width, infos[2].height), (40, 30) )


class TestCli( unittest.TestCase ):
    def setUp( self ):
        self.tempdir = tempfile.TemporaryDirectory()
        self.addCleanup( self.tempdir.cleanup )
        self.input = os.path.join( self.tempdir.name, 'logo.img' )
        self.pic_dir = os.path.join( self.tempdir.name, 'pic' )
        self.output = os.path.join( self.tempdir.name, 'new-logo.img' )
        with open( self.input, 'wb' ) as f:
            f.write( make_container( [make_slot( 'boot', 4, 4, gradient( 4, 4, 1 ) )] ) )

    def test_unpack_repack( self ):
        self.assertEqual( cli.main( ['-i', self.input, '-x', '-p', self.pic_dir] ), 0 )
        self.assertTrue( os.path.exists( os.path.join( self.pic_dir, 'boot.png' ) ) )
        self.assertEqual( cli.main( ['-i', self.input, '-p', self.pic_dir, '-o', self.output] ), 0 )
        with open( self.output, 'rb' ) as f:
            result = f.read()
        self.assertEqual( read_record( result, 0 ).pixels, gradient( 4, 4, 1 ) )

    def test_read_info( self ):
        out = io.StringIO()
        with contextlib.redirect_stdout( out ):
            self.assertEqual( cli.main( ['-i', self.input, '-r'] ), 0 )
        self.assertIn( ':[boot]', out.getvalue() )

    def test_errors( self ):
        self.assertEqual( cli.main( ['-i', self.input, '-p', self.pic_dir, '-o', self.output] ), 2 )
        self.assertFalse( os.path.exists( self.output ) )
        self.assertEqual( cli.main( ['-i', os.path.join( self.tempdir.name, 'missing.img' ), '-r'] ), 2 )

        with open( self.input, 'r+b' ) as f:
            f.seek( 0x2c )
            f.write( b'\x02' )
        self.assertEqual( cli.main( ['-i', self.input, '-r'] ), 2 )


if __name__ == '__main__':
    unittest.main()
