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

__author__                      = "Perry Kundert"
__email__                       = "perry@hardconsulting.com"
__copyright__                   = "Copyright (c) 2013 Hard Consulting Corporation"
__license__                     = "Dual License: GPLv3 (or later) and Commercial (see LICENSE)"

"""
Miscellaneous functionality used by various other modules.
"""

__all__				= [ 'change_function', 'function_name', 'lazystr', 'centeraxis' ]


def change_function( function, **kwds ):
    """Change a function with one or more changed co_... attributes, eg.:

            change_function( func, co_filename="new/file/path.py" )

    will change the func's co_filename to the specified string.

    """
    assert all( k.startswith( 'co_' ) and hasattr( function.__code__, k ) for k in kwds ), \
        "Invalid function keyword(s) supplied: %s" % ( ", ".join( kwds.keys() ))
    function.__code__		= function.__code__.replace( **kwds )

#
# logging.normal	-- regular program output
# logging.detail	-- detail in addition to normal output
# logging.trace		-- logs less relevant than debug (eg. each symbol processed)
#
#     Augment logging with some new levels, between INFO and WARNING, used for normal/detail output.
#
#     Logging finds the caller's name in the call stack by looking for the first function whose
# co_filename is *not* the logger source file.  So, we change our functions to appear as if they
# originated from logging._srcfile.
#
#      .FATAL 		       == 50
#      .ERROR 		       == 40
#      .WARNING 	       == 30
logging.NORMAL			= logging.INFO+5
logging.DETAIL			= logging.INFO+3
#      .INFO    	       == 20
#      .DEBUG    	       == 10
logging.TRACE			= logging.NOTSET+5
#      .NOTSET    	       == 0

logging.addLevelName( logging.NORMAL,	'NORMAL' )
logging.addLevelName( logging.DETAIL,	'DETAIL' )
logging.addLevelName( logging.TRACE,	'TRACE' )

def __normal( self, msg, *args, **kwargs ):
    if self.isEnabledFor( logging.NORMAL ):
        self._log( logging.NORMAL, msg, args, **kwargs )

def __detail( self, msg, *args, **kwargs ):
    if self.isEnabledFor( logging.DETAIL ):
        self._log( logging.DETAIL, msg, args, **kwargs )

def __trace( self, msg, *args, **kwargs ):
    if self.isEnabledFor( logging.TRACE ):
        self._log( logging.TRACE, msg, args, **kwargs )

change_function( __normal, co_filename=logging._srcfile )
change_function( __detail, co_filename=logging._srcfile )
change_function( __trace, co_filename=logging._srcfile )

logging.Logger.normal		= __normal
logging.Logger.detail		= __detail
logging.Logger.trace		= __trace

def __normal_root( msg, *args, **kwargs ):
    if len( logging.root.handlers ) == 0:
        logging.basicConfig()
    logging.root.normal( msg, *args, **kwargs )

def __detail_root( msg, *args, **kwargs ):
    if len( logging.root.handlers ) == 0:
        logging.basicConfig()
    logging.root.detail( msg, *args, **kwargs )

def __trace_root( msg, *args, **kwargs ):
    if len( logging.root.handlers ) == 0:
        logging.basicConfig()
    logging.root.trace( msg, *args, **kwargs )

change_function( __normal_root, co_filename=logging._srcfile )
change_function( __detail_root, co_filename=logging._srcfile )
change_function( __trace_root, co_filename=logging._srcfile )
logging.normal			= __normal_root
logging.detail			= __detail_root
logging.trace			= __trace_root

#
# function_name -- Attempt to elaborate on the module/class heritage of the given function
#
def function_name( f ):
    if hasattr( f, '__module__' ) and hasattr( f, '__qualname__' ):
        return ( f.__module__ or '' ) + '.' + f.__qualname__
    return getattr( f, '__name__', None ) or repr( f )

#
# lazystr		-- lazily evaluate expensive string formatting
#
class lazystr( object ):
    """Evaluates the given function returning a str lazily, eg:
           logging.debug( lazystr( lambda: \
               "Some expensive operation: %d" % ( obj.expensive() )))
       vs.:
           logging.debug(
               "Some expensive operation: %d", obj.expensive() )
    """
    __slots__ = '_function'
    def __init__( self, function ):
        self._function		= function
    def __str__( self ):
        return self._function()

#
# centeraxis	-- align a dotted name in a log column, so its rightmost axis char is in the middle
#
def centeraxis( string, width, axis='.', clip=False ):
    """Pad string to width, with the rightmost axis character at column width//2, so that eg. the
    'machine.' prefixes of several runs' log entries line up.  With no axis character, the string
    begins at the center.  If clip, anything beyond width is trimmed from either side.

    """
    string		= str( string )
    half		= width // 2
    pos			= max( string.rfind( axis ), 0 )
    left		= string[:pos].rjust( half )
    rght		= string[pos:].ljust( width - half )
    if clip:
        left		= left[len( left ) - half:]
        rght		= rght[:width - half]
    return left + rght
