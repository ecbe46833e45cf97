#
# Statelex -- Rule-driven state machine tokenizer
#
# Copyright (c) 2013, Hard Consulting Corporation.
#
# Statelex is free software: you can redistribute it and/or modify it under the
# terms of the GNU General Public License as published by the Free Software
# Foundation, either version 3 of the License, or (at your option) any later
# version.  See the LICENSE file at the top of the source tree.
#
# Statelex is distributed in the hope that it will be useful, but WITHOUT ANY
# WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS FOR
# A PARTICULAR PURPOSE.  See the GNU General Public License for more details.
#

import logging
import re

from . import misc
from .statemachine import END, Builder, Pattern, Token, action, literal_wrapper

__author__                      = "Perry Kundert"
__email__                       = "perry@hardconsulting.com"
__copyright__                   = "Copyright (c) 2013 Hard Consulting Corporation"
__license__                     = "Dual License: GPLv3 (or later) and Commercial (see LICENSE)"

"""
tokenizer -- A state machine over a stream of characters, collecting them into a buffer and emitting
the buffer as typed Tokens.

    colors = Tokenizer() \\
        .state( 'text' ) \\
            .on( '[', emit( 'text' ), transition( 'color' )) \\
            .on_end( emit( 'text' )) \\
            .otherwise( accept() ) \\
        .state( 'color' ) \\
            .on( ']', emit( 'color' ), transition( 'text' )) \\
            .on_end( abort( "Unclosed color tag" )) \\
            .otherwise( accept() ) \\
        .build()

    list( colors.run( "a[b]c" ))
    [Token(type='text', value='a'), Token(type='color', value='b'), Token(type='text', value='c')]
"""

__all__				= [ 'Tokenizer', 'pattern_wrapper', 'Emitter',
                                    'accept', 'emit', 'push', 'pop' ]

log				= logging.getLogger( __package__ )


def pattern_wrapper( matcher ):
    """A tokenizer's matcher may also be a compiled re pattern, matching any item it finds."""
    if isinstance( matcher, re.Pattern ):
        return Pattern( matcher )
    return literal_wrapper( matcher )


def empty_buffer( context ):
    context.buffer		= ''


def Tokenizer( name=None ):
    """Returns a Builder, configured to produce a tokenizer."""
    return Builder( name or 'tokenizer' ) \
        .matcher_wrapper( pattern_wrapper ) \
        .context_initializer( empty_buffer )


class accept( action ):
    """Append the current character to the buffer (nothing, at the end of input)."""
    def __call__( self, context ):
        if context.item is not END:
            context.buffer     += context.item


class emit( action ):
    """Queue a Token of the given type, valued by the buffer, and empty the buffer.  If an Emitter is
    supplied, its evaluators for the type (if any) transform the value."""
    def __init__( self, type, emitter=None ):
        self.type		= type
        self.emitter		= emitter

    def __str__( self ):
        return "%s(%r)" % ( self.__class__.__name__, self.type )

    def __call__( self, context ):
        value			= context.buffer
        if self.emitter is not None:
            value		= self.emitter.evaluate( self.type, value )
        context.emit( Token( self.type, value ))
        context.buffer		= ''


class Emitter( object ):
    """Collects chains of evaluators by token type, and produces emit actions applying them; eg. to emit
    'number' Tokens with an int value:

        numbers = Emitter().on( 'number', int )
        ... .on( ' ', numbers.emit( 'number' )) ...

    Evaluators are found when each Token is emitted, so may be (re)defined after the emit actions.
    """
    def __init__( self ):
        self.handlers		= {}

    def on( self, type, *evaluators ):
        """Set the evaluators (replacing any previous) applied in order to values of the given type."""
        self.handlers[type]	= evaluators
        return self

    def evaluate( self, type, value ):
        for evaluator in self.handlers.get( type, () ):
            value		= evaluator( value )
            log.trace( "%-10.10s == %r (via %s)", type, value, misc.function_name( evaluator ))
        return value

    def emit( self, type ):
        return emit( type, emitter=self )


class push( action ):
    """Push the current character onto the stack of delimiters."""
    def __call__( self, context ):
        context.values.append( context.item )


class pop( object ):
    """A matcher (not an action), matching the character most recently push-ed; when it matches, the
    character is popped from the stack.  Allows eg. a single state to handle strings quoted with
    either ' or ", where the closing quote must match the opening quote."""
    def __call__( self, context ):
        values			= context.values
        if values and context.item == values[-1]:
            values.pop()
            return True
        return False

    def __str__( self ):
        return 'pop()'

    def __repr__( self ):
        return '<%s>' % ( self )
