"""Shortcut module to import all of the oplogo structure primitives."""

from oplogo.version import __version__
from oplogo.refs import Ref, property_get, property_set, view_property
from oplogo.fields import FieldDefinitionError, ParseError, FieldValidationError, \
                            Field, NumberField, Bytes, UInt32_LE
from oplogo.blocks import Block
from oplogo.transforms import Transform, TransformResult
from oplogo.views import View
