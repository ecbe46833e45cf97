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

import re

from .statemachine import Pattern, abort, call, ret, transition
from .tokenizer import Tokenizer, accept, emit, pop, push

__author__                      = "Perry Kundert"
__email__                       = "perry@hardconsulting.com"
__copyright__                   = "Copyright (c) 2013 Hard Consulting Corporation"
__license__                     = "Dual License: GPLv3 (or later) and Commercial (see LICENSE)"

"""
grammars -- Ready-made tokenizers

colors	-- Text interspersed with [color] tags; [] restores the default color, and [[ is a literal [.
	   Tokens: text, color, default_color

html	-- A (loose) HTML tokenizer; recognizes tags, attributes with quoted values and entities.
	   Tokens: text, open_tag, tag_name, attribute_name, attribute_value, ending_tag, close_tag,
	   entity

"""

__all__				= [ 'colors', 'html', 'GRAMMARS' ]


colors				= Tokenizer( 'colors' ) \
    .state( 'text' ) \
        .on( '[', transition( 'opening_bracket' )) \
        .on_end( emit( 'text' )) \
        .otherwise( accept() ) \
    .state( 'opening_bracket' ) \
        .on( '[', accept(), transition( 'text' )) \
        .on( ']', emit( 'text' ), emit( 'default_color' ), transition( 'text' )) \
        .on_end( abort( "Unclosed color tag" )) \
        .otherwise( emit( 'text' ), accept(), transition( 'color' )) \
    .state( 'color' ) \
        .on( ']', emit( 'color' ), transition( 'text' )) \
        .on_end( abort( "Unclosed color tag" )) \
        .otherwise( accept() ) \
    .build( strict=True )


letter				= Pattern( '[A-Za-z]' )
space				= re.compile( r'\s' )

html				= Tokenizer( 'html' ) \
    .state( 'text' ) \
        .on( '<', emit( 'text' ), emit( 'open_tag' ), transition( 'pre_tag_name' )) \
        .on( '&', emit( 'text' ), call( 'entity' )) \
        .on_end( emit( 'text' )) \
        .otherwise( accept() ) \
    .state( 'pre_tag_name' ) \
        .on( letter, accept(), transition( 'tag_name' )) \
        .on( '/', emit( 'ending_tag' ), transition( 'tag_name' )) \
        .on( space ) \
        .on_end( abort( "Unclosed tag" )) \
        .otherwise( abort( "Bad tag name" )) \
    .state( 'tag_name' ) \
        .on( letter, accept() ) \
        .on( space, emit( 'tag_name' ), transition( 'pre_attribute_name' )) \
        .on( '>', emit( 'tag_name' ), emit( 'close_tag' ), transition( 'text' )) \
        .on_end( abort( "Unclosed tag" )) \
        .otherwise( abort( "Bad tag name" )) \
    .state( 'pre_attribute_name' ) \
        .on( letter, accept(), transition( 'attribute_name' )) \
        .on( space ) \
        .on( '>', emit( 'close_tag' ), transition( 'text' )) \
        .on( '/', emit( 'ending_tag' ), transition( 'pre_close_tag' )) \
        .on_end( abort( "Unclosed tag" )) \
        .otherwise( abort( "Bad attribute name" )) \
    .state( 'attribute_name' ) \
        .on( letter, accept() ) \
        .on( space, emit( 'attribute_name' ), transition( 'pre_equals' )) \
        .on( '=', emit( 'attribute_name' ), transition( 'pre_attribute_value' )) \
        .on_end( abort( "Unclosed tag" )) \
        .otherwise( abort( "Bad character in tag" )) \
    .state( 'pre_equals' ) \
        .on( '=', transition( 'pre_attribute_value' )) \
        .on( space ) \
        .on_end( abort( "Unclosed tag" )) \
        .otherwise( abort( "Expected =" )) \
    .state( 'pre_attribute_value' ) \
        .on( space ) \
        .on( re.compile( '["\']' ), push(), transition( 'attribute_value' )) \
        .on_end( abort( "Expected attribute value" )) \
        .otherwise( abort( "Expected attribute value" )) \
    .state( 'attribute_value' ) \
        .on( '&', emit( 'attribute_value' ), call( 'entity' )) \
        .on( pop(), emit( 'attribute_value' ), transition( 'pre_attribute_name' )) \
        .on_end( abort( "Unclosed attribute value" )) \
        .otherwise( accept() ) \
    .state( 'pre_close_tag' ) \
        .on( '>', emit( 'close_tag' ), transition( 'text' )) \
        .on( space ) \
        .on_end( abort( "Unclosed tag" )) \
        .otherwise( abort( "Expected '>'" )) \
    .state( 'entity' ) \
        .on( letter, accept() ) \
        .on( ';', emit( 'entity' ), ret() ) \
        .on_end( abort( "Unfinished HTML entity" )) \
        .otherwise( abort( "Bad character in HTML entity" )) \
    .build( strict=True )


GRAMMARS			= {
    'colors':	colors,
    'html':	html,
}
