"""Definition classes for data blocks."""
from __future__ import annotations

import copy
import logging
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Sequence

from oplogo import common

logger = logging.getLogger( __name__ )

if TYPE_CHECKING:
    from oplogo.fields import Field


class FieldDescriptor:
    def __init__( self, name: str ):
        """Attribute wrapper class for Fields.

        name
            Name of the Field.
        """
        self.name = name

    def __get__( self, instance: Block, cls: type[Block] ) -> Any:
        try:
            if instance is None:
                return cls._fields[self.name]
            return instance._field_data[self.name]
        except KeyError:
            raise AttributeError( self.name )

    def __set__( self, instance: Block, value: Any ):
        if instance is None:
            return
        instance._field_data[self.name] = value

    def __delete__( self, instance ):
        raise AttributeError( "can't delete Field" )


class BlockMeta( type ):
    def __new__( mcs, name, bases, attrs ):
        """Metaclass for Block which detects and wraps attributes from the class definition."""
        from oplogo.fields import Field

        fields: OrderedDict[str, Field] = OrderedDict()

        # add base class attributes to structs
        for base in bases:
            if hasattr( base, "_fields" ):
                fields.update( base._fields )

        ordered = sorted(
            attrs.items(), key=lambda i: getattr( i[1], "_position_hint", 0 )
        )
        for key, value in ordered:
            if isinstance( value, Field ):
                fields[key] = value

        for key in fields:
            attrs[key] = FieldDescriptor( key )
        attrs["_fields"] = fields

        klass = type.__new__( mcs, name, bases, attrs )

        for field_name, field in fields.items():
            field._name = field_name

        return klass

    @property
    def fields( cls ):
        return cls._fields


class Block( metaclass=BlockMeta ):
    _parent: Block | None = None
    _repr_values: list[str] | None = None
    _fields: OrderedDict[str, Field]
    _field_data: dict[str, Any]
    _export_cache: dict[str, bytes]

    def __init__(
        self,
        source_data: common.BytesReadType | dict[str, Any] | Block | None = None,
        *,
        parent: Block | None = None,
        path_hint: str | None = None,
    ):
        """Base class for Blocks.

        source_data
            Source data to construct Block with. Can be a byte string, dictionary
            of attribute: value pairs, or another Block object.

        parent
            Parent Block object where this Block is defined. Used for e.g.
            evaluating Refs.

        path_hint
            Cache a string describing where the Block came from. Used in
            error messages.
        """
        self._field_data = {}
        self._export_cache = {}
        self._parent = parent
        self._path_hint = path_hint
        if self._path_hint is None:
            self._path_hint = f"<{self.__class__.__name__}>"

        if isinstance( source_data, Block ):
            self.clone_data( source_data )
        elif isinstance( source_data, dict ):
            # preload defaults, then overwrite with dictionary values
            self.import_data( None )
            self.update_data( source_data )
        else:
            self.import_data( source_data )

    def __repr__( self ) -> str:
        desc = f"0x{id( self ):016x}"
        if isinstance( self.repr, str ):
            desc = self.repr
        return f"<{self.__class__.__name__}: {desc}>"

    def __eq__( self, other: Any ) -> bool:
        if not isinstance( other, Block ):
            return NotImplemented
        return (
            self.__class__ is other.__class__
            and self._field_data == other._field_data
        )

    __hash__ = None

    @property
    def repr( self ) -> str | None:
        """Plaintext summary of the Block."""
        if self._repr_values:
            value_map = {
                x: getattr( self, x ) for x in self._repr_values if hasattr( self, x )
            }
        else:
            value_map = dict( self._field_data )
        values: list[str] = []
        for name, value in value_map.items():
            if isinstance( value, str ):
                output = f"str[{len( value )}]"
            elif common.is_bytes( value ):
                output = f"bytes[{len( value )}]"
            elif isinstance( value, Sequence ):
                output = f"list[{len( value )}]"
            else:
                output = str( value )
            values.append( f"{name}={output}" )
        return ", ".join( values )

    def get_path( self ) -> str:
        return self._path_hint

    def clone_data( self, source: Block ) -> None:
        """Clone data from another Block.

        Fields missing from the source keep their default values.

        source
            Block instance to copy from.
        """
        assert isinstance( source, Block )
        self.import_data( None )
        for name in self.__class__._fields:
            if name in source._fields:
                self._field_data[name] = copy.copy( getattr( source, name ) )

    def update_data( self, source: dict[str, Any] ) -> None:
        """Update data from a dictionary.

        source
            Dictionary of attribute: value pairs.
        """
        assert isinstance( source, dict )
        for attr, value in source.items():
            if attr not in self.__class__._fields and not hasattr( self, attr ):
                raise AttributeError( f"{self.get_path()}: no attribute {attr}" )
            setattr( self, attr, value )

    def import_data( self, raw_buffer: common.BytesReadType | None ) -> None:
        """Import data from a byte array.

        raw_buffer
            Byte array to import from. None loads the default value of each Field.
        """
        klass = self.__class__
        if raw_buffer is not None:
            assert common.is_bytes( raw_buffer )

        self._field_data = {}
        for name, field in klass._fields.items():
            if raw_buffer is None:
                self._field_data[name] = field.get_default( parent=self )
                continue
            self._field_data[name] = field.get_from_buffer( raw_buffer, parent=self )
            if logger.isEnabledFor( logging.DEBUG ):
                logger.debug( f"{field.get_path( self )} [{field}]: loaded" )

    def update_deps( self ) -> None:
        """Update all dependent variables derived from this Block."""
        for name, field in self.__class__._fields.items():
            field.update_deps( self._field_data[name], parent=self )

    def get_size( self ) -> int:
        """Get the projected size (in bytes) of the exported data from this Block instance."""
        size = 0
        for name, field in self.__class__._fields.items():
            size = max( size, field.get_end_offset( self._field_data[name], parent=self ) )
        return size

    def export_data( self ) -> bytearray:
        """Export data to a byte array."""
        klass = self.__class__
        self._export_cache = {}
        try:
            self.update_deps()
            output = bytearray( b"\x00" * self.get_size() )
            for name, field in klass._fields.items():
                field.update_buffer_with_value( self._field_data[name], output, parent=self )
        finally:
            self._export_cache = {}
        return output
