"""Definition classes for cross-references."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from oplogo.blocks import Block

T = TypeVar( "T" )


class Ref( Generic[T] ):
    """Base class for defining cross-references."""

    def __init__( self, path: str ):
        """Create a new Ref instance.

        path
            The path to traverse from the context object to reach the target.
            Child lookups should be in property dot syntax (e.g. obj1.obj2.target).
        """
        if not isinstance( path, str ):
            raise TypeError( "path argument to Ref() should be a string" )
        self._path = tuple( path.split( "." ) )

    def get( self, instance: Any ) -> T:
        """Return an attribute from an object using the Ref path."""
        target = instance
        for attr in self._path:
            target = getattr( target, attr )
        return target

    def set( self, instance: Any, value: T ) -> None:
        """Set an attribute on an object using the Ref path."""
        target = instance
        for attr in self._path[:-1]:
            target = getattr( target, attr )
        setattr( target, self._path[-1], value )

    def __repr__( self ) -> str:
        return f'<{self.__class__.__name__}: {".".join( self._path )}>'


def property_get( prop: None | T | Ref[T], instance: Block | None ) -> T | None:
    """Wrapper for property reads which auto-dereferences Refs if required.

    prop
        A Ref (which gets dereferenced and returned) or any other value (which gets returned).

    instance
        The context object used to dereference the Ref.
    """
    if isinstance( prop, Ref ):
        return prop.get( instance )
    return prop


def property_set( prop: Ref[T], instance: Block | None, value: T ) -> None:
    """Wrapper for property writes which auto-dereferences Refs.

    Throws AttributeError if prop is not a Ref.
    """
    if isinstance( prop, Ref ):
        prop.set( instance, value )
        return
    raise AttributeError(
        f"can't change value of constant {prop} (context: {instance})"
    )


def view_property( prop: str ) -> property:
    """Wrapper for attributes of a View class which auto-dereferences Refs.

    prop
        A string containing the name of the class attribute to wrap.
    """

    def getter( self: Any ) -> Any:
        return property_get( getattr( self, prop ), self.parent )

    def setter( self: Any, value: Any ) -> None:
        return property_set( getattr( self, prop ), self.parent, value )

    return property( getter, setter )
