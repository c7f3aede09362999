"""Definition classes for common fields in binary formats."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Union

from typing_extensions import Literal

from oplogo import common
from oplogo.refs import Ref, property_get, property_set
from oplogo.transforms import Transform

if TYPE_CHECKING:
    from oplogo.blocks import Block

logger = logging.getLogger( __name__ )

OffsetType = Union[int, Ref[int]]
EndianType = Literal["little", "big"]


class FieldDefinitionError( Exception ):
    pass


class ParseError( Exception ):
    pass


class FieldValidationError( Exception ):
    pass


class Field( object ):
    def __init__( self, offset: OffsetType, *, default: Any = None ):
        """Base class for Fields.

        offset
            Position of data, relative to the start of the parent block.

        default
            Default value to emit in the case of e.g. creating an empty Block.
        """
        self._position_hint = next( common.next_position_hint )
        self._name: Optional[str] = None
        self.offset = offset
        self.default = default

    def __repr__( self ):
        desc = f"0x{id( self ):016x}"
        if isinstance( self.repr, str ):
            desc = self.repr
        return f"<{self.__class__.__name__}: {desc}>"

    @property
    def repr( self ) -> Optional[str]:
        """Plaintext summary of the Field."""
        offset = self.offset
        return f"offset={hex( offset ) if isinstance( offset, int ) else offset}"

    # the descriptor protocol is handled by blocks.FieldDescriptor;
    # these stubs keep type checkers from treating Fields as values
    def __get__( self, instance: Block, owner: Any ) -> Any:
        ...

    def __set__( self, instance: Block, value: Any ) -> None:
        ...

    def get_default( self, parent: Optional[Block] = None ) -> Any:
        """Return a fresh copy of the default value."""
        return self.default

    def get_from_buffer(
        self, buffer: common.BytesReadType, parent: Optional[Block] = None
    ) -> Any:
        """Create a Python object from a byte string, using the field definition.

        buffer
            Input byte string to process.

        parent
            Parent block object where this Field is defined. Used for e.g.
            evaluating Refs.
        """
        raise NotImplementedError

    def update_buffer_with_value(
        self, value: Any, buffer: common.BytesWriteType, parent: Optional[Block] = None
    ) -> None:
        """Write a Python object into a byte array, using the field definition.

        value
            Input Python object to process.

        buffer
            Output byte array to encode value into.

        parent
            Parent block object where this Field is defined. Used for e.g.
            evaluating Refs.
        """
        self.validate( value, parent )

    def get_start_offset( self, parent: Optional[Block] = None ) -> int:
        return property_get( self.offset, parent )

    def get_size( self, value: Any, parent: Optional[Block] = None ) -> int:
        """Return the number of bytes value takes up once exported."""
        raise NotImplementedError

    def get_end_offset( self, value: Any, parent: Optional[Block] = None ) -> int:
        return self.get_start_offset( parent ) + self.get_size( value, parent )

    def update_deps( self, value: Any, parent: Optional[Block] = None ) -> None:
        """Update any Refs this Field depends on to match value.

        Called by the parent Block before exporting.
        """
        pass

    def validate( self, value: Any, parent: Optional[Block] = None ) -> None:
        """Throw a FieldValidationError if value can't be exported."""
        pass

    def get_path( self, parent: Optional[Block] = None, index: Optional[int] = None ) -> str:
        prefix = parent.get_path() if parent is not None else "<unknown>"
        suffix = f"[{index}]" if index is not None else ""
        return f"{prefix}.{self._name}{suffix}"


class NumberField( Field ):
    def __init__(
        self,
        field_size: int,
        signed: bool,
        endian: EndianType,
        offset: OffsetType,
        *,
        default: int = 0,
        count: Optional[int] = None,
    ):
        """Base class for integer Fields.

        field_size
            Size of each element in bytes. (Usually defined by child class)

        signed
            Whether elements are two's complement signed. (Usually defined by child class)

        endian
            Byte order of each element, 'little' or 'big'. (Usually defined by child class)

        offset
            Position of data, relative to the start of the parent block.

        default
            Default value to emit in the case of e.g. creating an empty Block.

        count
            Load multiple numbers. None implies a single value, non-negative
            numbers will return a Python list.
        """
        super().__init__( offset, default=default )
        if endian not in ("little", "big"):
            raise FieldDefinitionError( f"unknown endianness {endian}" )
        self.field_size = field_size
        self.signed = signed
        self.endian = endian
        bits = field_size * 8
        if signed:
            self.format_range = range( -(1 << (bits - 1)), 1 << (bits - 1) )
        else:
            self.format_range = range( 0, 1 << bits )
        self.count = count

    def get_default( self, parent=None ):
        count = self.count
        if count is None:
            return self.default
        return [self.default] * count

    def get_element_from_buffer( self, offset, buffer, parent=None, index=None ) -> int:
        data = buffer[offset:offset + self.field_size]
        if len( data ) != self.field_size:
            raise ParseError(
                f"{self.get_path( parent, index )}: was expecting {self.field_size} bytes, only found {len( data )}!"
            )
        return int.from_bytes( data, byteorder=self.endian, signed=self.signed )

    def get_from_buffer( self, buffer, parent=None ):
        offset = self.get_start_offset( parent )
        count = self.count
        if count is None:
            return self.get_element_from_buffer( offset, buffer, parent )
        return [
            self.get_element_from_buffer( offset + i * self.field_size, buffer, parent, index=i )
            for i in range( count )
        ]

    def update_buffer_with_value( self, value, buffer, parent=None ):
        super().update_buffer_with_value( value, buffer, parent )
        offset = self.get_start_offset( parent )
        count = self.count
        elements = [value] if count is None else value
        for element in elements:
            data = element.to_bytes( self.field_size, byteorder=self.endian, signed=self.signed )
            buffer[offset:offset + self.field_size] = data
            offset += self.field_size

    def validate_element( self, element, parent=None, index=None ):
        if type( element ) != int:
            raise FieldValidationError(
                f"{self.get_path( parent, index )}: Expecting type {int}, not {type( element )}"
            )
        if element not in self.format_range:
            raise FieldValidationError(
                f"{self.get_path( parent, index )}: Value {element} not in format range ({self.format_range})"
            )

    def validate( self, value, parent=None ):
        count = self.count
        if count is None:
            self.validate_element( value, parent )
            return
        if not isinstance( value, (list, tuple) ):
            raise FieldValidationError(
                f"{self.get_path( parent )}: Expecting a list of {count} elements, not {type( value )}"
            )
        if len( value ) != count:
            raise FieldValidationError(
                f"{self.get_path( parent )}: Expecting {count} elements, found {len( value )}"
            )
        for i, element in enumerate( value ):
            self.validate_element( element, parent, index=i )

    def get_size( self, value, parent=None ):
        count = self.count
        if count is None:
            return self.field_size
        return self.field_size * count

    @property
    def repr( self ):
        details = super().repr
        if self.count is not None:
            details += f", count={self.count}"
        if self.default:
            details += f", default={self.default}"
        return details


class Bytes( Field ):
    def __init__(
        self,
        offset: OffsetType,
        *,
        length: Optional[Union[int, Ref[int]]] = None,
        default: Optional[bytes] = None,
        transform: Optional[Transform] = None,
    ):
        """Field class for raw byte data.

        offset
            Position of data, relative to the start of the parent block.

        length
            Exact length of the data in the parent block. None consumes the
            rest of the buffer. A Ref length is updated on export to match
            the (transformed) data.

        default
            Default value to emit in the case of e.g. creating an empty Block.
            Fixed-length fields default to zero bytes.

        transform
            Transform object to pass the stored data through. The Field value
            is the result of Transform.import_data().
        """
        super().__init__( offset, default=default )
        if isinstance( length, int ) and length < 0:
            raise FieldDefinitionError( "length can't be a negative number!" )
        if default is not None and isinstance( length, int ) and transform is None:
            if len( default ) != length:
                raise FieldDefinitionError(
                    f"default must be exactly {length} bytes long!"
                )
        self.length = length
        self.transform = transform

    def get_default( self, parent=None ):
        if self.default is not None:
            return self.default
        if isinstance( self.length, int ) and self.transform is None:
            return b"\x00" * self.length
        return b""

    def get_from_buffer( self, buffer, parent=None ):
        offset = self.get_start_offset( parent )
        length = property_get( self.length, parent )
        if length is None:
            data = buffer[offset:]
        else:
            data = buffer[offset:offset + length]
            if len( data ) != length:
                raise ParseError(
                    f"{self.get_path( parent )}: was expecting {length} bytes, only found {len( data )}!"
                )
        if self.transform is not None:
            return self.transform.import_data( data, parent=parent ).payload
        return bytes( data )

    def get_export_payload( self, value, parent=None ) -> bytes:
        """Return value as it will be stored in the parent block."""
        if self.transform is None:
            return value
        cache = getattr( parent, "_export_cache", None )
        if cache is not None and self._name in cache:
            return cache[self._name]
        data = self.transform.export_data( value, parent=parent ).payload
        if cache is not None:
            cache[self._name] = data
        return data

    def update_deps( self, value, parent=None ):
        if isinstance( self.length, Ref ):
            size = len( self.get_export_payload( value, parent ) )
            if property_get( self.length, parent ) != size:
                property_set( self.length, parent, size )

    def validate( self, value, parent=None ):
        if not common.is_bytes( value ):
            raise FieldValidationError(
                f"{self.get_path( parent )}: Expecting bytes, not {type( value )}"
            )
        length = property_get( self.length, parent )
        if length is not None and self.transform is None and len( value ) != length:
            raise FieldValidationError(
                f"{self.get_path( parent )}: Expecting {length} bytes, found {len( value )}"
            )

    def update_buffer_with_value( self, value, buffer, parent=None ):
        super().update_buffer_with_value( value, buffer, parent )
        data = self.get_export_payload( value, parent )
        length = property_get( self.length, parent )
        if length is not None and len( data ) != length:
            raise FieldValidationError(
                f"{self.get_path( parent )}: Expecting {length} bytes, found {len( data )}"
            )
        offset = self.get_start_offset( parent )
        buffer[offset:offset + len( data )] = data

    def get_size( self, value, parent=None ):
        length = property_get( self.length, parent )
        if length is not None:
            return length
        return len( self.get_export_payload( value, parent ) )

    @property
    def repr( self ):
        details = super().repr
        if self.length is not None:
            details += f", length={self.length}"
        if self.transform is not None:
            details += f", transform={self.transform.__class__.__name__}"
        return details


class UInt32_LE( NumberField ):
    def __init__(
        self,
        offset: OffsetType,
        *,
        default: int = 0,
        count: Optional[int] = None,
    ) -> None:
        super().__init__(
            4, False, "little", offset, default=default, count=count
        )
